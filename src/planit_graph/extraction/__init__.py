"""
Extraction Module - Requirement text to typed relations.
========================================================

- relations: Course-code lookup and keyword-scoped relation extraction

Pipeline flow:
    requirement text → RelationExtractor → ExtractedRelation → RelationRecord
"""

from planit_graph.extraction.relations import (
    CourseLookup,
    ExtractedRelation,
    RelationExtractor,
    extract_course_relations,
    extract_relations,
)

__all__ = [
    "CourseLookup",
    "ExtractedRelation",
    "RelationExtractor",
    "extract_course_relations",
    "extract_relations",
]
