# Services package init
"""
Parcel Server - Services Layer
===============================

What:  Business logic between the routes (HTTP) and the database.
How:   Services receive the request's AsyncSession and return Pydantic
       models; SQLAlchemy failures become DatabaseError.

Service Inventory:
    - ParcelService: parcel create / get / list / delete
    - RiderService: rider applications and status changes
    - UserService: first-sign-in registration
    - PaymentService: atomic "mark paid + record payment", payment history
    - StripePaymentGateway: payment intents behind retries and a circuit breaker
    - FirebaseIdentityService: bearer token verification
"""
