"""Infrastructure layer — manifests, graph engine, process execution.

This layer depends on stdlib and third-party libs (NetworkX, structlog).
It must never import from services, commands, or output.
The service layer bridges between domain models and infrastructure.
"""
