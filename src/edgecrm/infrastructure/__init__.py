"""Infrastructure layer — storage engine, tenant scoping, repositories.

This layer depends on stdlib, SQLAlchemy, and the domain layer.
It must never import from services, commands, or output.
The service layer bridges between callers and the repositories.
"""
