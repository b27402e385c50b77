"""Service layer — the command pipeline and the glue around it.

Services may import from the domain layer.
They must never import from config or context.
"""
