# Routes package init
"""
Modifier — Demo Service Routes
================================

What:  Routes of the demo downstream service wrapped by the middleware.

Route Inventory:
    - echo.py:    POST /chat, POST /api/{endpoint}
    - health.py:  GET  /health

These are fixtures for trying templates out, not part of the middleware.
"""
