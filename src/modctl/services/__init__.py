"""Service layer: target resolution, step sequencing and task dispatch.

Services may import from domain, config and infrastructure.
They must never import from commands or output.
"""
