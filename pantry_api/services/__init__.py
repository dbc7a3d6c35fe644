# Services package init
"""
Pantry Lookup API — Services Layer
====================================

What:  Backend access sitting between routes (HTTP) and the database.

Service Inventory:
    - backend_client: Per-request authenticated handle + its factory
    - lookup_service: Read-only queries for units, categories and staples
"""
