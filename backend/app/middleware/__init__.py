# Middleware package init
"""
Parcel Server - Middleware Package
===================================

Middleware Chain:
    Request -> [Request ID] -> [Access Log] -> [GZip] -> [CORS] -> Route Handler

    The request ID is set first so the access log line and every error body
    carry it.
"""
