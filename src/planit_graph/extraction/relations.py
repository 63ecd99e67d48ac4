"""
Relation Extractor - Pattern-based parsing of requirement text.
===============================================================

Turns free-form requirement prose such as
``"Prereq: CS 136; Antireq: CS 138"`` into typed relation triples
``(source course, target course, kind)``.

Parsing is best-effort enrichment: codes that do not resolve to a known
course, and codes that point back at the course being described, are
dropped without error. The extractor is a pure function of its inputs.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Union

from planit_graph.shared.config import ExtractionSettings, get_settings
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import CourseRecord, RelationKind, RelationRecord
from planit_graph.shared.utils import split_code

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Patterns
# ─────────────────────────────────────────────────────────────────────────────

KEYWORD_KINDS = {
    "pre": RelationKind.PREREQUISITE,
    "co": RelationKind.COREQUISITE,
    "anti": RelationKind.ANTIREQUISITE,
}

# Requirement-text field on a course record -> kind implied by that field
FIELD_KINDS = {
    "prerequisites": RelationKind.PREREQUISITE,
    "corequisites": RelationKind.COREQUISITE,
    "antirequisites": RelationKind.ANTIREQUISITE,
}


def build_code_pattern(min_letters: int = 2, max_letters: int = 10) -> re.Pattern[str]:
    """
    Course-code token: upper-case subject, optional whitespace, three digits
    and an optional trailing letter ("CS 246", "MATH135", "CS 136L").
    """
    return re.compile(rf"\b([A-Z]{{{min_letters},{max_letters}}})\s*(\d{{3}}[A-Z]?)(?!\d)")


def build_keyword_pattern(allow_hyphen: bool = True) -> re.Pattern[str]:
    """Case-insensitive requirement keyword ("prereq", "Co-requisite", ...)."""
    hyphen = "-?" if allow_hyphen else ""
    return re.compile(rf"\b(anti|co|pre){hyphen}req", re.IGNORECASE)


# Rest of a keyword word ("uisite(s)") and an optional introducing colon
_KEYWORD_TAIL = re.compile(r"\w*(?:\(s\))?\s*(:)?")

_CLAUSE_BREAK = re.compile(r"[.;]")


# ─────────────────────────────────────────────────────────────────────────────
# Data Classes
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ExtractedRelation:
    """A resolved (source, target, kind) triple found in requirement text."""

    source_code: str
    source_id: str
    target_id: str
    kind: RelationKind

    @property
    def identity(self) -> tuple[str, str, RelationKind]:
        return (self.source_id, self.target_id, self.kind)

    def to_record(self, note: Optional[str] = None) -> RelationRecord:
        return RelationRecord(
            source_id=self.source_id,
            target_id=self.target_id,
            kind=self.kind,
            note=note,
        )


@dataclass
class _KeywordRun:
    """Adjacent keywords with no code or clause break between them."""

    start: int
    end: int
    kinds: list[RelationKind]
    introduces: bool


# ─────────────────────────────────────────────────────────────────────────────
# Course Lookup
# ─────────────────────────────────────────────────────────────────────────────


class CourseLookup:
    """
    Exact (subject, catalog number) -> course id index.

    Example:
        >>> lookup = CourseLookup({("CS", "136"): "cs136"})
        >>> lookup.resolve("cs", "136")
        'cs136'
    """

    def __init__(self, mapping: Optional[Mapping[Union[tuple[str, str], str], str]] = None):
        self._index: dict[tuple[str, str], str] = {}
        for key, course_id in (mapping or {}).items():
            if isinstance(key, str):
                subject, catalog = split_code(key)
            else:
                subject, catalog = key
            self.add(subject, catalog, course_id)

    @classmethod
    def from_courses(cls, courses: Iterable[CourseRecord]) -> "CourseLookup":
        lookup = cls()
        for course in courses:
            lookup.add(course.subject, course.catalog_number, course.id)
        return lookup

    def add(self, subject: str, catalog_number: str, course_id: str) -> None:
        key = (subject.strip().upper(), catalog_number.strip().upper())
        # first registration wins, mirroring the builder's duplicate handling
        self._index.setdefault(key, course_id)

    def resolve(self, subject: str, catalog_number: str) -> Optional[str]:
        return self._index.get((subject.strip().upper(), catalog_number.strip().upper()))

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index


# ─────────────────────────────────────────────────────────────────────────────
# Relation Extractor
# ─────────────────────────────────────────────────────────────────────────────


class RelationExtractor:
    """
    Extract typed relations from requirement text.

    Keyword scoping: a keyword introduces codes when a colon or a code
    follows it ("Prereq: CS 136", "prereq CS 136"). A code takes the kind(s)
    of the closest preceding introducing run, where keywords with no code or
    clause break between them form a single run ("Prereq or coreq: MATH 135").

    Codes before the first introducing run take every kind named by the
    keywords in that leading text, so "CS 136 is a prereq" reads as a whole
    block. Without such keywords they take ``default_kind`` when given,
    otherwise the kinds of the first introducing run. Text without any
    keyword yields relations only when ``default_kind`` is given.
    """

    def __init__(
        self,
        lookup: CourseLookup,
        settings: Optional[ExtractionSettings] = None,
    ):
        self.lookup = lookup
        self.settings = settings or get_settings().extraction
        self._code_pattern = build_code_pattern(
            self.settings.min_subject_length, self.settings.max_subject_length
        )
        self._keyword_pattern = build_keyword_pattern(self.settings.allow_hyphenated_keywords)

    def classify(self, text: str) -> set[RelationKind]:
        """Every keyword category mentioned anywhere in the text."""
        return {
            KEYWORD_KINDS[m.group(1).lower()] for m in self._keyword_pattern.finditer(text or "")
        }

    def find_codes(self, text: str) -> list[tuple[str, str]]:
        """All (subject, catalog number) tokens in order of appearance."""
        return [(m.group(1), m.group(2)) for m in self._code_pattern.finditer(text or "")]

    def _introduces(self, text: str, keyword_end: int) -> bool:
        """Whether the keyword ending at ``keyword_end`` is followed by a colon or a code."""
        tail = _KEYWORD_TAIL.match(text, keyword_end)
        if tail.group(1):
            return True
        return self._code_pattern.match(text, tail.end()) is not None

    def _keyword_runs(self, text: str, code_starts: list[int]) -> list[_KeywordRun]:
        runs: list[_KeywordRun] = []
        for m in self._keyword_pattern.finditer(text):
            kind = KEYWORD_KINDS[m.group(1).lower()]
            introduces = self._introduces(text, m.end())
            last = runs[-1] if runs else None
            gap = text[last.end : m.start()] if last is not None else ""
            joins = (
                last is not None
                and not any(last.end <= pos < m.start() for pos in code_starts)
                and not _CLAUSE_BREAK.search(gap)
            )
            if joins:
                if kind not in last.kinds:
                    last.kinds.append(kind)
                last.end = m.end()
                last.introduces = last.introduces or introduces
            else:
                runs.append(_KeywordRun(start=m.start(), end=m.end(), kinds=[kind], introduces=introduces))
        return runs

    def extract(
        self,
        text: Optional[str],
        target_id: str,
        default_kind: Optional[RelationKind] = None,
    ) -> list[ExtractedRelation]:
        """
        Extract relations pointing at ``target_id``.

        Args:
            text: Free-form requirement text
            target_id: Id of the course the text describes
            default_kind: Kind for codes not governed by any keyword

        Returns:
            Unique relations in first-seen order
        """
        if not text or not text.strip():
            return []

        codes = [(m.start(), m.group(1), m.group(2)) for m in self._code_pattern.finditer(text)]
        runs = self._keyword_runs(text, [start for start, _, _ in codes])
        introducing = [run for run in runs if run.introduces]
        first_scope = introducing[0].start if introducing else len(text)

        leading: list[RelationKind] = []
        for run in runs:
            if not run.introduces and run.start < first_scope:
                leading.extend(k for k in run.kinds if k not in leading)
        if not leading:
            if default_kind is not None:
                leading = [default_kind]
            elif introducing:
                leading = list(introducing[0].kinds)

        results: dict[tuple[str, str, RelationKind], ExtractedRelation] = {}
        dropped = 0
        for start, subject, catalog in codes:
            kinds = leading
            for run in introducing:
                if run.start > start:
                    break
                kinds = run.kinds

            source_id = self.lookup.resolve(subject, catalog)
            if source_id is None or source_id == target_id:
                dropped += 1
                continue
            for kind in kinds:
                relation = ExtractedRelation(
                    source_code=f"{subject} {catalog}",
                    source_id=source_id,
                    target_id=target_id,
                    kind=kind,
                )
                results.setdefault(relation.identity, relation)

        if dropped:
            logger.debug(f"Dropped {dropped} unresolved or self-referencing codes for {target_id}")
        return list(results.values())

    def extract_for_course(self, course: CourseRecord) -> list[ExtractedRelation]:
        """
        Extract relations from a course record's requirement fields.

        Each field's own kind is the default for codes it mentions before
        any keyword, so ``prerequisites="CS 136"`` yields a prerequisite.
        """
        results: dict[tuple[str, str, RelationKind], ExtractedRelation] = {}
        for field_name, field_kind in FIELD_KINDS.items():
            text = getattr(course, field_name)
            for relation in self.extract(text, course.id, default_kind=field_kind):
                results.setdefault(relation.identity, relation)
        return list(results.values())


# ─────────────────────────────────────────────────────────────────────────────
# Convenience Functions
# ─────────────────────────────────────────────────────────────────────────────


def extract_course_relations(
    course: CourseRecord,
    lookup: CourseLookup,
) -> list[RelationRecord]:
    """
    Relation records for one course's requirement fields.

    Args:
        course: Course with prerequisite/corequisite/antirequisite text
        lookup: Known course codes

    Returns:
        Relation records ready for the graph builder
    """
    extractor = RelationExtractor(lookup)
    return [r.to_record() for r in extractor.extract_for_course(course)]


def extract_relations(
    courses: list[CourseRecord],
    lookup: Optional[CourseLookup] = None,
) -> list[RelationRecord]:
    """
    Relation records for a whole course list.

    Args:
        courses: Course records carrying requirement text
        lookup: Known course codes (default: built from ``courses``)

    Returns:
        Unique relation records across all courses
    """
    if lookup is None:
        lookup = CourseLookup.from_courses(courses)

    extractor = RelationExtractor(lookup)
    seen: dict[tuple[str, str, RelationKind], RelationRecord] = {}
    for course in courses:
        for relation in extractor.extract_for_course(course):
            seen.setdefault(relation.identity, relation.to_record())

    logger.info(f"Extracted {len(seen)} relations from {len(courses)} courses")
    return list(seen.values())
