"""Infrastructure layer — JSON graph store, workspace, graph index.

This layer depends on stdlib, third-party libs (NetworkX), and the
domain models it persists. It must never import from services,
commands, or output.
"""
