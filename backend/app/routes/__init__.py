# Routes package init
"""
Parcel Server - API Routes Package
===================================

Route Inventory:
    - users.py:    POST   /users
    - parcels.py:  GET    /parcels                 (signed-in)
                   GET    /parcels/{id}
                   POST   /parcels
                   DELETE /parcels/{id}
    - riders.py:   GET    /riders/pending
                   GET    /riders/active
                   POST   /riders
                   PATCH  /riders/{id}/status
    - payments.py: GET    /payments                (signed-in, own email only)
                   POST   /payments
                   POST   /create-payment-intent
    - health.py:   GET    /  and  GET /health

Routes stay thin: read the request, call a service, return its model.
"""
