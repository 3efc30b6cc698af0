"""
Parcel Server - Application Package
====================================

Layered backend for a parcel delivery service:

    ┌─────────────────────────────────────┐
    │     Routes (API Layer, FastAPI)     │  <- HTTP concerns, auth dependency
    ├─────────────────────────────────────┤
    │     Services (Business Logic)       │  <- parcels, riders, users, payments
    ├─────────────────────────────────────┤
    │   Models & Schemas (Data)           │  <- SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │   Database / Firebase / Stripe      │  <- built in the app lifespan
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
