# Routes package init
"""
Pantry Lookup API — API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - lookups.py: GET /api/units        (measurement units)
                  GET /api/categories   (product categories)
                  GET /api/staples      (active staple definitions)
    - health.py:  GET /health           (service health check)

Design Principle:
    Routes are thin: they authenticate, call LookupService, and set
    response headers. Query construction lives in the service layer.
"""
