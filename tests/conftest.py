"""
Pytest Configuration and Fixtures.
===================================

Shared fixtures for all test modules:
- Sample course and relation records
- Built graphs
- Layout and interaction settings
- Temporary directories
"""

import os
import tempfile
from pathlib import Path
from typing import Generator

import pytest

# Set test environment before importing app modules
os.environ["PLANIT_GRAPH_ENV"] = "test"


# ─────────────────────────────────────────────────────────────────────────────
# Path Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_path(project_root: Path) -> Path:
    """Get the config file path."""
    return project_root / "config" / "settings.yaml"


# ─────────────────────────────────────────────────────────────────────────────
# Sample Data Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_course_data() -> list[dict]:
    """Course rows in the camelCase shape the REST layer uses."""
    return [
        {"id": "cs136", "subject": "CS", "catalogNumber": "136", "title": "Elementary Algorithm Design", "units": 0.5, "faculty": "MAT", "termsOffered": ["FALL", "WINTER"]},
        {"id": "cs138", "subject": "CS", "catalogNumber": "138", "title": "Introduction to Data Abstraction", "units": 0.5, "faculty": "MAT", "termsOffered": ["WINTER"]},
        {
            "id": "cs246",
            "subject": "CS",
            "catalogNumber": "246",
            "title": "Object-Oriented Software Development",
            "units": 0.5,
            "faculty": "MAT",
            "termsOffered": ["FALL", "WINTER", "SPRING"],
            "prerequisites": "Prereq: CS 136 or CS 138",
            "antirequisites": "CS 138",
        },
        {"id": "math135", "subject": "MATH", "catalogNumber": "135", "title": "Algebra for Honours Mathematics", "units": 0.5, "faculty": "MAT", "termsOffered": ["FALL"]},
        {
            "id": "stat230",
            "subject": "STAT",
            "catalogNumber": "230",
            "title": "Probability",
            "units": 0.5,
            "faculty": "MAT",
            "termsOffered": ["SPRING"],
            "prerequisites": "MATH 135; Coreq: CS 136",
        },
    ]


@pytest.fixture
def sample_courses(sample_course_data: list[dict]):
    """Sample CourseRecord instances."""
    from planit_graph.shared.schemas import CourseRecord

    return [CourseRecord.model_validate(row) for row in sample_course_data]


@pytest.fixture
def sample_relations():
    """Sample RelationRecord instances (one references an unknown course)."""
    from planit_graph.shared.schemas import RelationRecord

    return [
        RelationRecord(source_id="cs136", target_id="cs246", kind="PREREQUISITE"),
        RelationRecord(source_id="cs138", target_id="cs246", kind="ANTIREQ"),
        RelationRecord(source_id="math135", target_id="stat230", kind="PREREQUISITE"),
        RelationRecord(source_id="cs999", target_id="cs246", kind="PREREQUISITE"),
    ]


@pytest.fixture
def sample_graph(sample_courses, sample_relations):
    """Graph built from the sample records."""
    from planit_graph.graph import build_graph

    return build_graph(sample_courses, sample_relations).graph


@pytest.fixture
def abc_graph():
    """Three nodes {A, B, C} with one edge A -> B."""
    from planit_graph.shared.schemas import CourseGraph, CourseNode, RelationEdge, RelationKind

    nodes = tuple(
        CourseNode(id=node_id, subject="CS", catalog_number=number, label=f"CS {number}", level=100)
        for node_id, number in (("A", "100"), ("B", "110"), ("C", "120"))
    )
    edge = RelationEdge(id="A->B:PREREQUISITE", source="A", target="B", kind=RelationKind.PREREQUISITE)
    return CourseGraph(nodes=nodes, edges=(edge,))


# ─────────────────────────────────────────────────────────────────────────────
# Settings Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def layout_settings():
    """Layout settings with built-in defaults (independent of YAML and env)."""
    from planit_graph.shared.config import LayoutSettings

    return LayoutSettings()


@pytest.fixture
def interaction_settings():
    """Interaction settings with built-in defaults."""
    from planit_graph.shared.config import InteractionSettings

    return InteractionSettings()


@pytest.fixture
def layout_config():
    """A small canvas layout request."""
    from planit_graph.shared.schemas import LayoutConfig

    return LayoutConfig(width=800, height=600, layout_kind="force", iterations=60)


@pytest.fixture
def recording_adapter():
    """Render adapter that records fast-path calls."""
    from planit_graph.interaction.render import RenderAdapter

    class RecordingAdapter(RenderAdapter):
        def __init__(self):
            self.nodes = []
            self.edges = []

        def move_node(self, node_id, point):
            self.nodes.append((node_id, point))

        def move_edge(self, edge_id, source, target):
            self.edges.append((edge_id, source, target))

    return RecordingAdapter()


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


@pytest.fixture(autouse=True)
def reset_settings():
    """Clear the cached settings between tests."""
    from planit_graph.shared.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
