"""pmgraph — project-management knowledge graph and analytics."""

__version__ = "0.1.0"
