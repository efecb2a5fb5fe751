"""Domain layer: pure types, constants and the error taxonomy.

The domain never imports from services, infrastructure, commands or output.
"""
