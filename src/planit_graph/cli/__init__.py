"""
CLI Module - Command-line interface for Planit Graph.
=====================================================

Provides CLI commands for:
- Extracting relations from requirement text
- Building the course graph
- Computing layouts
- Showing configuration

Usage:
    planit-graph --help
    planit-graph extract -c data/courses.json
    planit-graph build -c data/courses.json -r data/relations.json
    planit-graph layout -k concentric

Components:
- main: Typer CLI application
"""

from planit_graph.cli.main import app, cli

__all__ = ["app", "cli"]
