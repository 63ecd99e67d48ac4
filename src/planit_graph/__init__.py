"""
Planit Graph - Course relationship graph engine
===============================================

Turns course records and their prerequisite, corequisite, antirequisite and
equivalence relations into an interactive, laid-out graph:

- extraction: typed relations from free-form requirement text
- graph: immutable node/edge graph, adjacency index, build cache, filters
- layout: deterministic geometric layouts and a background force simulation
- interaction: selection, drag, pan, zoom-to-cursor and viewport culling

Flow: records → graph → layout (background) → interaction → visible subset.
"""

__version__ = "0.1.0"
__author__ = "Planit Team"
__license__ = "MIT"

# Public API - lazy imports to avoid circular dependencies and speed up startup
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules (imported on demand)
    "shared",
    "extraction",
    "graph",
    "layout",
    "interaction",
    "cli",
]
