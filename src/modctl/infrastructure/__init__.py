"""Infrastructure layer: subprocesses, filesystem discovery, artifact output.

Infrastructure may import from domain only.
"""
