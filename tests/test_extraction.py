"""
Tests for Extraction Module.
============================

Tests for:
- CourseLookup: code resolution
- RelationExtractor: keyword scoping, self-reference, unresolved codes
- extract_course_relations / extract_relations: record-level helpers
"""

import pytest


@pytest.fixture
def lookup():
    from planit_graph.extraction import CourseLookup

    return CourseLookup(
        {
            ("CS", "136"): "cs136",
            ("CS", "138"): "cs138",
            ("CS", "246"): "cs246",
            "MATH 135": "math135",
            ("CS", "136L"): "cs136l",
        }
    )


@pytest.fixture
def extractor(lookup):
    from planit_graph.extraction import RelationExtractor
    from planit_graph.shared.config import ExtractionSettings

    return RelationExtractor(lookup, ExtractionSettings())


def _triples(relations):
    return [(r.source_id, r.target_id, r.kind.value) for r in relations]


# ─────────────────────────────────────────────────────────────────────────────
# Lookup Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestCourseLookup:
    """Tests for course-code resolution."""

    def test_resolve_is_case_insensitive(self, lookup):
        assert lookup.resolve("cs", "136") == "cs136"
        assert lookup.resolve("MATH", "135") == "math135"

    def test_unknown_code(self, lookup):
        assert lookup.resolve("CS", "999") is None

    def test_from_courses(self, sample_courses):
        from planit_graph.extraction import CourseLookup

        lookup = CourseLookup.from_courses(sample_courses)

        assert len(lookup) == 5
        assert lookup.resolve("STAT", "230") == "stat230"


# ─────────────────────────────────────────────────────────────────────────────
# Extractor Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestRelationExtractor:
    """Tests for relation extraction from requirement text."""

    def test_prereq_and_antireq_scenario(self, extractor):
        """Each code takes the kind of the keyword before it."""
        relations = extractor.extract("Prereq: CS 136, Antireq: CS 138", "cs246")

        assert _triples(relations) == [
            ("cs136", "cs246", "PREREQUISITE"),
            ("cs138", "cs246", "ANTIREQUISITE"),
        ]

    def test_self_reference_excluded(self, extractor):
        relations = extractor.extract("Prereq: CS 246 and CS 136", "cs246")

        assert _triples(relations) == [("cs136", "cs246", "PREREQUISITE")]
        assert all(r.source_id != r.target_id for r in relations)

    def test_unresolved_codes_dropped(self, extractor):
        relations = extractor.extract("Prerequisite: CS 999 or PHYS 121", "cs246")

        assert relations == []

    def test_duplicates_collapse(self, extractor):
        relations = extractor.extract("Prereq: CS 136 or CS136; prereq CS 136", "cs246")

        assert _triples(relations) == [("cs136", "cs246", "PREREQUISITE")]

    def test_adjacent_keywords_form_one_run(self, extractor):
        relations = extractor.extract("Prereq or coreq: MATH 135", "cs246")

        kinds = {r.kind.value for r in relations}
        assert kinds == {"PREREQUISITE", "COREQUISITE"}

    def test_hyphenated_and_long_keywords(self, extractor):
        relations = extractor.extract("Co-requisite: CS 136. Anti-requisite: CS 138", "cs246")

        assert _triples(relations) == [
            ("cs136", "cs246", "COREQUISITE"),
            ("cs138", "cs246", "ANTIREQUISITE"),
        ]

    def test_codes_before_first_keyword_use_default(self, extractor):
        from planit_graph.shared.schemas import RelationKind

        relations = extractor.extract(
            "MATH 135; Coreq: CS 136", "cs246", default_kind=RelationKind.PREREQUISITE
        )

        assert _triples(relations) == [
            ("math135", "cs246", "PREREQUISITE"),
            ("cs136", "cs246", "COREQUISITE"),
        ]

    def test_codes_before_first_keyword_without_default(self, extractor):
        relations = extractor.extract("CS 136 is required. Antireq: CS 138", "cs246")

        assert _triples(relations) == [
            ("cs136", "cs246", "ANTIREQUISITE"),
            ("cs138", "cs246", "ANTIREQUISITE"),
        ]

    def test_keywords_after_codes_read_as_block(self, extractor):
        relations = extractor.extract("CS 136 is a prereq; CS 138 is an antireq", "cs246")

        assert _triples(relations) == [
            ("cs136", "cs246", "PREREQUISITE"),
            ("cs136", "cs246", "ANTIREQUISITE"),
            ("cs138", "cs246", "PREREQUISITE"),
            ("cs138", "cs246", "ANTIREQUISITE"),
        ]

    def test_keyword_after_code_beats_default(self, extractor):
        from planit_graph.shared.schemas import RelationKind

        relations = extractor.extract(
            "CS 138 is an antireq", "cs246", default_kind=RelationKind.PREREQUISITE
        )

        assert _triples(relations) == [("cs138", "cs246", "ANTIREQUISITE")]

    def test_trailing_keyword_then_introducing_keyword(self, extractor):
        relations = extractor.extract("CS 136 is a prereq. Antireq: CS 138", "cs246")

        assert _triples(relations) == [
            ("cs136", "cs246", "PREREQUISITE"),
            ("cs138", "cs246", "ANTIREQUISITE"),
        ]

    def test_clause_break_splits_keyword_runs(self, extractor):
        relations = extractor.extract("See antireq. Prereq: CS 136", "cs246")

        assert _triples(relations) == [("cs136", "cs246", "PREREQUISITE")]

    def test_no_keyword_no_default_yields_nothing(self, extractor):
        assert extractor.extract("CS 136 recommended", "cs246") == []

    def test_no_space_and_suffix_codes(self, extractor):
        relations = extractor.extract("Prereq: MATH135 and CS 136L", "cs246")

        assert [r.source_id for r in relations] == ["math135", "cs136l"]

    def test_four_digit_number_is_not_a_code(self, extractor):
        assert extractor.extract("Prereq: CS 1360", "cs246") == []

    def test_empty_text(self, extractor):
        assert extractor.extract("", "cs246") == []
        assert extractor.extract(None, "cs246") == []

    def test_classify(self, extractor):
        from planit_graph.shared.schemas import RelationKind

        kinds = extractor.classify("Prerequisites: x. Antirequisite: y")

        assert kinds == {RelationKind.PREREQUISITE, RelationKind.ANTIREQUISITE}

    def test_extraction_is_pure(self, extractor):
        text = "Prereq: CS 136, Antireq: CS 138"

        assert extractor.extract(text, "cs246") == extractor.extract(text, "cs246")


# ─────────────────────────────────────────────────────────────────────────────
# Record Helper Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestRecordExtraction:
    """Tests for extraction over course records."""

    def test_extract_course_relations_uses_field_kind(self, sample_courses):
        from planit_graph.extraction import CourseLookup, extract_course_relations

        lookup = CourseLookup.from_courses(sample_courses)
        cs246 = next(c for c in sample_courses if c.id == "cs246")

        records = extract_course_relations(cs246, lookup)

        assert {r.identity for r in records} == {
            ("cs136", "cs246", _kind("PREREQUISITE")),
            ("cs138", "cs246", _kind("PREREQUISITE")),
            ("cs138", "cs246", _kind("ANTIREQUISITE")),
        }

    def test_extract_relations_batch(self, sample_courses):
        from planit_graph.extraction import extract_relations

        records = extract_relations(sample_courses)

        identities = {(r.source_id, r.target_id, r.kind.value) for r in records}
        assert ("math135", "stat230", "PREREQUISITE") in identities
        assert ("cs136", "stat230", "COREQUISITE") in identities
        assert len(identities) == len(records) == 5


def _kind(name):
    from planit_graph.shared.schemas import RelationKind

    return RelationKind(name)
