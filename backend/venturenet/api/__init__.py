"""API Layer — FastAPI routes, dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Every response body is an envelope: {"data", "status"} or {"error", "status"}

Design Decisions:
    - Thin routes delegate to services
"""
