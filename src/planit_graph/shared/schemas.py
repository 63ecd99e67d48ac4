"""
Schemas Module - Pydantic data models for the graph engine.
===========================================================

Defines all data contracts used across the engine:
- Course and relation input records
- Graph nodes, edges and the immutable graph snapshot
- Layout configuration and layout snapshots
"""

import math
import re
from enum import Enum
from typing import Any, NamedTuple, Optional
from urllib.parse import quote

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PrivateAttr,
    field_validator,
    model_validator,
)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class RelationKind(str, Enum):
    """Closed set of course relationship types."""

    PREREQUISITE = "PREREQUISITE"
    COREQUISITE = "COREQUISITE"
    ANTIREQUISITE = "ANTIREQUISITE"
    EQUIVALENT = "EQUIVALENT"

    @classmethod
    def parse(cls, value: Any) -> "RelationKind":
        """Parse a kind from its long name or the short database code."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text in _RELATION_ALIASES:
            return _RELATION_ALIASES[text]
        return cls(text)


_RELATION_ALIASES = {
    "PREREQ": RelationKind.PREREQUISITE,
    "COREQ": RelationKind.COREQUISITE,
    "ANTIREQ": RelationKind.ANTIREQUISITE,
    "EQUIV": RelationKind.EQUIVALENT,
}


class Term(str, Enum):
    """Academic terms a course can be offered in."""

    FALL = "FALL"
    WINTER = "WINTER"
    SPRING = "SPRING"


class LayoutKind(str, Enum):
    """Available layout families."""

    GRID = "grid"
    HIERARCHICAL = "hierarchical"
    CONCENTRIC = "concentric"
    FORCE = "force"

    @property
    def is_deterministic(self) -> bool:
        """Whether this layout is a pure geometric function of its input."""
        return self is not LayoutKind.FORCE


class Point(NamedTuple):
    """A 2-D coordinate in graph space."""

    x: float
    y: float

    def offset(self, dx: float, dy: float) -> "Point":
        return Point(self.x + dx, self.y + dy)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)


# ─────────────────────────────────────────────────────────────────────────────
# Input Records
# ─────────────────────────────────────────────────────────────────────────────


_LEADING_DIGITS = re.compile(r"\d+")


def derive_level(catalog_number: str) -> Optional[int]:
    """
    Derive the academic level (100, 200, ...) from a catalog number.

    Example:
        >>> derive_level("246")
        200
        >>> derive_level("136L")
        100
    """
    match = _LEADING_DIGITS.search(catalog_number or "")
    if not match:
        return None
    return (int(match.group()) // 100) * 100


class CourseRecord(BaseModel):
    """
    A course row as supplied by the data store.

    Accepts both snake_case and the camelCase names used by the REST layer.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    # Identity
    id: str = Field(..., validation_alias=AliasChoices("id", "course_id", "courseId"))
    subject: str = Field(..., description="Subject code (e.g. 'CS')")
    catalog_number: str = Field(
        ...,
        validation_alias=AliasChoices("catalog_number", "catalogNumber"),
        description="Catalog number (e.g. '246')",
    )

    # Descriptive attributes
    title: Optional[str] = Field(default=None, description="Display title")
    units: Optional[float] = Field(default=None, description="Unit count")
    level: Optional[int] = Field(default=None, description="Academic level")
    faculty: Optional[str] = Field(default=None, description="Faculty / department")
    terms_offered: list[Term] = Field(
        default_factory=list,
        validation_alias=AliasChoices("terms_offered", "termsOffered", "terms"),
    )
    description: Optional[str] = Field(default=None)

    # Free-form requirement text
    prerequisites: Optional[str] = Field(default=None, description="Prerequisite text")
    corequisites: Optional[str] = Field(default=None, description="Corequisite text")
    antirequisites: Optional[str] = Field(default=None, description="Antirequisite text")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v).strip()

    @field_validator("subject", "catalog_number", mode="before")
    @classmethod
    def normalize_code_part(cls, v: Any) -> str:
        return str(v).strip().upper()

    @field_validator("terms_offered", mode="before")
    @classmethod
    def parse_terms(cls, v: Any) -> list[Any]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [part for part in re.split(r"[,\s]+", v) if part]
        return [t.strip().upper() if isinstance(t, str) else t for t in v]

    @property
    def code(self) -> str:
        """Canonical 'SUBJECT NUMBER' label."""
        return f"{self.subject} {self.catalog_number}"

    @property
    def effective_level(self) -> Optional[int]:
        if self.level is not None:
            return self.level
        return derive_level(self.catalog_number)


class RelationRecord(BaseModel):
    """A relation row as supplied by the data store."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    source_id: str = Field(
        ...,
        validation_alias=AliasChoices("source_id", "sourceId", "source_course_id", "source"),
    )
    target_id: str = Field(
        ...,
        validation_alias=AliasChoices("target_id", "targetId", "target_course_id", "target"),
    )
    kind: RelationKind = Field(..., validation_alias=AliasChoices("kind", "rtype"))
    note: Optional[str] = Field(default=None)

    @field_validator("source_id", "target_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return str(v).strip()

    @field_validator("kind", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> RelationKind:
        return RelationKind.parse(v)

    @property
    def identity(self) -> tuple[str, str, RelationKind]:
        return (self.source_id, self.target_id, self.kind)


# ─────────────────────────────────────────────────────────────────────────────
# Graph Models
# ─────────────────────────────────────────────────────────────────────────────


def make_edge_id(source_id: str, target_id: str, kind: RelationKind) -> str:
    """
    Derive a stable edge id from its identity triple.

    Course ids are percent-encoded so that ids containing the separators
    cannot make two different triples share an id.

    Example:
        >>> make_edge_id("cs136", "cs246", RelationKind.PREREQUISITE)
        'cs136->cs246:PREREQUISITE'
    """
    source = quote(source_id, safe="")
    target = quote(target_id, safe="")
    return f"{source}->{target}:{RelationKind.parse(kind).value}"


class CourseNode(BaseModel):
    """A graph vertex representing one course. Immutable per graph snapshot."""

    model_config = ConfigDict(frozen=True)

    id: str
    subject: str
    catalog_number: str
    label: str
    title: Optional[str] = None
    units: Optional[float] = None
    level: Optional[int] = None
    faculty: Optional[str] = None
    terms_offered: frozenset[Term] = frozenset()

    @classmethod
    def from_record(cls, record: CourseRecord) -> "CourseNode":
        return cls(
            id=record.id,
            subject=record.subject,
            catalog_number=record.catalog_number,
            label=record.code,
            title=record.title,
            units=record.units,
            level=record.effective_level,
            faculty=record.faculty,
            terms_offered=frozenset(record.terms_offered),
        )

    @property
    def catalog_sort_key(self) -> tuple[int, str]:
        """Numeric-then-textual catalog ordering (CS 100 < CS 115 < CS 136L)."""
        match = _LEADING_DIGITS.search(self.catalog_number)
        return (int(match.group()) if match else 0, self.catalog_number)


class RelationEdge(BaseModel):
    """A typed directed relationship between two course nodes."""

    model_config = ConfigDict(frozen=True)

    id: str
    source: str
    target: str
    kind: RelationKind
    note: Optional[str] = None

    @classmethod
    def from_record(cls, record: RelationRecord) -> "RelationEdge":
        return cls(
            id=make_edge_id(record.source_id, record.target_id, record.kind),
            source=record.source_id,
            target=record.target_id,
            kind=record.kind,
            note=record.note,
        )

    @property
    def identity(self) -> tuple[str, str, RelationKind]:
        return (self.source, self.target, self.kind)

    def touches(self, node_id: str) -> bool:
        return self.source == node_id or self.target == node_id


class CourseGraph(BaseModel):
    """
    Immutable directed multigraph of courses.

    Nodes are unique by id and edges unique by (source, target, kind) and by id;
    every edge endpoint references an existing node. Use the graph
    builder to construct one from raw records.
    """

    model_config = ConfigDict(frozen=True)

    nodes: tuple[CourseNode, ...] = ()
    edges: tuple[RelationEdge, ...] = ()

    _index: dict[str, CourseNode] = PrivateAttr(default_factory=dict)

    @model_validator(mode="after")
    def check_integrity(self) -> "CourseGraph":
        node_ids = {n.id for n in self.nodes}
        if len(node_ids) != len(self.nodes):
            raise ValueError("Duplicate node ids in graph")
        identities = {e.identity for e in self.edges}
        if len(identities) != len(self.edges):
            raise ValueError("Duplicate (source, target, kind) edges in graph")
        if len({e.id for e in self.edges}) != len(self.edges):
            raise ValueError("Duplicate edge ids in graph")
        for edge in self.edges:
            if edge.source not in node_ids or edge.target not in node_ids:
                raise ValueError(f"Edge {edge.id} references a missing node")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._index = {n.id: n for n in self.nodes}

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def is_empty(self) -> bool:
        return not self.nodes

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def edge_ids(self) -> list[str]:
        return [e.id for e in self.edges]

    def has_node(self, node_id: str) -> bool:
        return node_id in self._index

    def get_node(self, node_id: str) -> Optional[CourseNode]:
        return self._index.get(node_id)

    def edges_between(self, source_id: str, target_id: str) -> list[RelationEdge]:
        return [e for e in self.edges if e.source == source_id and e.target == target_id]

    def subjects(self) -> list[str]:
        """Distinct subjects in first-seen order."""
        seen: dict[str, None] = {}
        for node in self.nodes:
            seen.setdefault(node.subject, None)
        return list(seen)


# ─────────────────────────────────────────────────────────────────────────────
# Layout Models
# ─────────────────────────────────────────────────────────────────────────────


CONCENTRIC_ATTRIBUTES = ("subject", "faculty", "level")


class LayoutConfig(BaseModel):
    """
    Caller-supplied layout request.

    Values that would drive the simulation to non-finite coordinates are
    rejected here, before any computation starts.
    """

    model_config = ConfigDict(populate_by_name=True)

    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)
    layout_kind: LayoutKind = Field(
        default=LayoutKind.FORCE,
        validation_alias=AliasChoices("layout_kind", "layoutKind", "kind"),
    )
    strength: float = Field(default=300.0, ge=0, description="Repulsion magnitude")
    distance: float = Field(default=100.0, gt=0, description="Spring rest length")
    iterations: int = Field(default=300, gt=0)
    link_strength: float = Field(
        default=0.5, ge=0, le=1, validation_alias=AliasChoices("link_strength", "linkStrength")
    )
    concentric_attribute: str = Field(
        default="subject",
        validation_alias=AliasChoices("concentric_attribute", "concentricAttribute"),
    )

    @field_validator("layout_kind", mode="before")
    @classmethod
    def parse_kind(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("width", "height", "strength", "distance", "link_strength")
    @classmethod
    def require_finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be finite")
        return v

    @field_validator("concentric_attribute")
    @classmethod
    def check_attribute(cls, v: str) -> str:
        if v not in CONCENTRIC_ATTRIBUTES:
            raise ValueError(f"concentric_attribute must be one of {CONCENTRIC_ATTRIBUTES}")
        return v

    @property
    def center(self) -> Point:
        return Point(self.width / 2, self.height / 2)


class LayoutSnapshot(BaseModel):
    """
    Positions emitted by the layout engine.

    Progress snapshots carry ``complete=False``; the terminal snapshot of a
    run carries ``complete=True`` and ``progress=100``.
    """

    model_config = ConfigDict(frozen=True)

    generation: int = Field(default=0, description="Request generation token")
    layout_kind: LayoutKind
    positions: dict[str, Point] = Field(default_factory=dict)
    progress: float = Field(default=0.0, ge=0, le=100)
    complete: bool = False

    def position_of(self, node_id: str) -> Optional[Point]:
        return self.positions.get(node_id)

    def to_dict(self) -> dict[str, Any]:
        """Plain JSON-friendly representation."""
        return {
            "generation": self.generation,
            "layout_kind": self.layout_kind.value,
            "progress": self.progress,
            "complete": self.complete,
            "positions": {k: [p.x, p.y] for k, p in self.positions.items()},
        }
