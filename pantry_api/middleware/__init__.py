# Middleware package init
"""
Pantry Lookup API — Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (request direction):
    Request → [Request ID] → [Access Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID: correlation ID for log lines and error bodies
    2. Access Logging: one line per /api request with credential source
       and session refresh flag
    3. GZip / CORS: provided by FastAPI
"""
