"""API Layer — FastAPI routes and error handlers for operating the service.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses

Design Decisions:
    - Thin read-only routes: the sweep is driven by the scheduler, never by HTTP
"""
