"""
Shared Module - Common utilities, configuration, schemas, and logging.
======================================================================

This module provides foundational components used across all other modules:

- config: Configuration loading and management
- logging: Rich-backed logging setup
- schemas: Pydantic data models (records, graph, layout)
- utils: Utility functions (hashing, code normalization, file I/O)
"""

from planit_graph.shared.config import Settings, get_settings, reload_settings
from planit_graph.shared.logging import get_console, get_logger, setup_logging
from planit_graph.shared.schemas import (
    CourseGraph,
    CourseNode,
    CourseRecord,
    LayoutConfig,
    LayoutKind,
    LayoutSnapshot,
    Point,
    RelationEdge,
    RelationKind,
    RelationRecord,
    Term,
    make_edge_id,
)
from planit_graph.shared.utils import (
    compute_hash,
    compute_input_hash,
    load_json,
    load_jsonl,
    load_records,
    normalize_code,
    save_json,
    save_jsonl,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    "reload_settings",
    # Logging
    "get_console",
    "get_logger",
    "setup_logging",
    # Schemas
    "CourseGraph",
    "CourseNode",
    "CourseRecord",
    "LayoutConfig",
    "LayoutKind",
    "LayoutSnapshot",
    "Point",
    "RelationEdge",
    "RelationKind",
    "RelationRecord",
    "Term",
    "make_edge_id",
    # Utils
    "compute_hash",
    "compute_input_hash",
    "load_json",
    "load_jsonl",
    "load_records",
    "normalize_code",
    "save_json",
    "save_jsonl",
]
