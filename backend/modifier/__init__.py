"""
Modifier — HTTP Message Transformation Middleware
===================================================

What: Marks the `modifier` directory as a Python package.
Why:  Enables imports like `from modifier.middleware import ModifierMiddleware`.

Architecture Note:
    The package is layered the same way the request flows through it:

    ┌─────────────────────────────────────┐
    │     Middleware (ASGI orchestrator)  │  ← sequences stages per request
    ├─────────────────────────────────────┤
    │   Services (header/query/body/...)  │  ← one transformer per concern
    ├─────────────────────────────────────┤
    │    Templating (Jinja2 + functions)  │  ← compiled once, shared read-only
    └─────────────────────────────────────┘

    Everything below the middleware layer is synchronous and free of I/O;
    only the orchestrator talks to the ASGI `receive`/`send` channels.
"""

__version__ = "1.0.0"
