"""
Tests Package - Unit and integration tests for Planit Graph.
============================================================

Test modules:
- test_shared: Config, hashing and record I/O tests
- test_extraction: Relation extractor tests
- test_graph: Builder, adjacency, cache and filter tests
- test_layout: Geometric layouts, force simulation, engine and worker tests
- test_interaction: View transform, culling and controller tests
- test_cli: Command-line end-to-end tests

Run tests with:
    pytest tests/
    pytest tests/ -v --cov=src/planit_graph
    pytest tests/ -m "not integration"
"""
