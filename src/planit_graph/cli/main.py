"""
CLI Main - Typer command-line interface.
========================================

Commands:
- extract: Extract relations from course requirement text
- build: Build the course graph and write nodes/edges JSON
- layout: Compute a layout and write node positions
- info: Show configuration and data paths
"""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from planit_graph.shared.logging import get_console, get_logger

logger = get_logger(__name__)

app = typer.Typer(
    name="planit-graph",
    help="""🗺️ Planit Graph - Course relationship graph engine

Builds a prerequisite / corequisite / antirequisite graph from course records,
extracts relations from free-form requirement text, and computes layouts.

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

COMMANDS OVERVIEW:

  extract  Extract typed relations from requirement text
           -c, --courses      Course records (JSON or JSONL)
           -o, --output       Relation records output file

  build    Build the graph (nodes + edges) from courses and relations
           -r, --relations    Relation records (optional)
           --extract          Also extract relations from requirement text

  layout   Compute node positions
           -k, --kind         grid | hierarchical | concentric | force
           -n, --iterations   Force iterations

  info     Show configuration and data paths

━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

QUICK START:

  planit-graph extract -c data/courses.json -o data/relations.json
  planit-graph build -c data/courses.json -r data/relations.json
  planit-graph layout -k concentric -o data/output/layout.json

Use 'planit-graph <command> --help' for detailed command options.
""",
    add_completion=False,
    rich_markup_mode="rich",
)

console = get_console()


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────


def _load_inputs(
    courses_file: Optional[Path],
    relations_file: Optional[Path],
    extract: bool,
):
    """Load course and relation records, optionally adding extracted relations."""
    from planit_graph.extraction import extract_relations
    from planit_graph.shared.config import get_settings
    from planit_graph.shared.schemas import CourseRecord, RelationRecord
    from planit_graph.shared.utils import load_records

    paths = get_settings().resolved_paths
    courses_file = courses_file or paths.courses_file

    if not courses_file.exists():
        console.print(f"[red]Courses file not found: {courses_file}[/red]")
        raise typer.Exit(1)

    try:
        courses = load_records(courses_file, CourseRecord)
        relations: list[RelationRecord] = []
        if relations_file is not None:
            if not relations_file.exists():
                console.print(f"[red]Relations file not found: {relations_file}[/red]")
                raise typer.Exit(1)
            relations = load_records(relations_file, RelationRecord)
    except ValidationError as e:
        console.print(f"[red]Invalid record: {e}[/red]")
        raise typer.Exit(1)

    if extract:
        relations = relations + extract_relations(courses)

    return courses, relations


# ─────────────────────────────────────────────────────────────────────────────
# Extract Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def extract(
    courses_file: Optional[Path] = typer.Option(
        None,
        "--courses", "-c",
        help="Course records with prerequisites/corequisites/antirequisites text. Default: from config.",
    ),
    output_file: Path = typer.Option(
        Path("data/relations.json"),
        "--output", "-o",
        help="Where to write relation records (.json or .jsonl).",
    ),
):
    """
    🔎 Extract relations from course requirement text.

    Course codes in each requirement field are resolved against the loaded
    courses; unknown codes and self-references are dropped.

    Examples:
        planit-graph extract -c data/courses.json
        planit-graph extract -c data/courses.jsonl -o data/relations.jsonl
    """
    from planit_graph.extraction import extract_relations
    from planit_graph.shared.utils import save_jsonl, save_models_to_json

    courses, _ = _load_inputs(courses_file, None, extract=False)
    relations = extract_relations(courses)

    if output_file.suffix.lower() == ".jsonl":
        save_jsonl(output_file, (r.model_dump(mode="json") for r in relations))
    else:
        save_models_to_json(output_file, relations)

    table = Table(title="Extracted Relations")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    counts: dict[str, int] = {}
    for relation in relations:
        counts[relation.kind.value] = counts.get(relation.kind.value, 0) + 1
    for kind, count in sorted(counts.items()):
        table.add_row(kind, str(count))
    console.print(table)

    console.print(f"\n[bold green]✓ Wrote {len(relations)} relations to {output_file}[/bold green]")


# ─────────────────────────────────────────────────────────────────────────────
# Build Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def build(
    courses_file: Optional[Path] = typer.Option(
        None,
        "--courses", "-c",
        help="Course records (JSON or JSONL). Default: from config.",
    ),
    relations_file: Optional[Path] = typer.Option(
        None,
        "--relations", "-r",
        help="Relation records (JSON or JSONL).",
    ),
    extract_text: bool = typer.Option(
        False,
        "--extract/--no-extract",
        help="Also extract relations from requirement text.",
    ),
    subject: Optional[str] = typer.Option(
        None,
        "--subject", "-s",
        help="Keep only this subject's courses and the courses related to them.",
    ),
    output_file: Path = typer.Option(
        Path("data/output/graph.json"),
        "--output", "-o",
        help="Where to write the graph JSON.",
    ),
):
    """
    🕸️ Build the course graph.

    Writes {nodes, edges, meta} JSON. Relations naming unknown courses are
    dropped and counted.

    Examples:
        planit-graph build -c data/courses.json -r data/relations.json
        planit-graph build -c data/courses.json --extract -s CS
    """
    from planit_graph.graph import build_graph, graph_stats, subject_subgraph
    from planit_graph.shared.utils import save_json

    courses, relations = _load_inputs(courses_file, relations_file, extract_text)
    result = build_graph(courses, relations)
    graph = result.graph
    if subject:
        graph = subject_subgraph(graph, subject)

    save_json(
        output_file,
        {
            "nodes": [n.model_dump(mode="json") for n in graph.nodes],
            "edges": [e.model_dump(mode="json") for e in graph.edges],
            "meta": result.summary(),
        },
    )

    stats = graph_stats(graph)
    table = Table(title="Graph")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Nodes", str(stats.node_count))
    table.add_row("Edges", str(stats.edge_count))
    for kind, count in stats.edges_by_kind.items():
        table.add_row(f"  {kind}", str(count))
    table.add_row("Isolated nodes", str(stats.isolated_nodes))
    table.add_row("Dropped relations", str(result.dropped_relations))
    console.print(table)

    console.print(f"\n[bold green]✓ Graph written to {output_file}[/bold green]")


# ─────────────────────────────────────────────────────────────────────────────
# Layout Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def layout(
    courses_file: Optional[Path] = typer.Option(
        None,
        "--courses", "-c",
        help="Course records (JSON or JSONL). Default: from config.",
    ),
    relations_file: Optional[Path] = typer.Option(
        None,
        "--relations", "-r",
        help="Relation records (JSON or JSONL).",
    ),
    extract_text: bool = typer.Option(
        False,
        "--extract/--no-extract",
        help="Also extract relations from requirement text.",
    ),
    kind: Optional[str] = typer.Option(
        None,
        "--kind", "-k",
        help="Layout kind: grid, hierarchical, concentric or force. Default: from config.",
    ),
    width: Optional[float] = typer.Option(None, "--width", help="Canvas width."),
    height: Optional[float] = typer.Option(None, "--height", help="Canvas height."),
    iterations: Optional[int] = typer.Option(None, "--iterations", "-n", help="Force iterations."),
    strength: Optional[float] = typer.Option(None, "--strength", help="Repulsion strength."),
    distance: Optional[float] = typer.Option(None, "--distance", help="Spring rest length."),
    attribute: str = typer.Option(
        "subject",
        "--attribute", "-a",
        help="Concentric grouping: subject, faculty or level.",
    ),
    output_file: Path = typer.Option(
        Path("data/output/layout.json"),
        "--output", "-o",
        help="Where to write positions JSON.",
    ),
):
    """
    📐 Compute a layout.

    The force layout runs on the background worker; progress is shown as it
    converges. Writes {layout_kind, positions: {id: [x, y]}}.

    Examples:
        planit-graph layout -c data/courses.json -k grid
        planit-graph layout -c data/courses.json -r data/relations.json -k force -n 500
    """
    from planit_graph.graph import build_graph
    from planit_graph.layout import LayoutEngine, LayoutWorker, MessageType
    from planit_graph.shared.config import get_settings
    from planit_graph.shared.schemas import LayoutConfig
    from planit_graph.shared.utils import save_json

    settings = get_settings()
    defaults = settings.layout

    try:
        config = LayoutConfig(
            width=width if width is not None else defaults.width,
            height=height if height is not None else defaults.height,
            layout_kind=kind or settings.get_effective_layout_kind(),
            strength=strength if strength is not None else defaults.strength,
            distance=distance if distance is not None else defaults.distance,
            iterations=iterations if iterations is not None else defaults.iterations,
            link_strength=defaults.link_strength,
            concentric_attribute=attribute,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid layout config: {e}[/red]")
        raise typer.Exit(1)

    courses, relations = _load_inputs(courses_file, relations_file, extract_text)
    graph = build_graph(courses, relations).graph

    console.print(Panel(
        f"[bold]Layout Configuration[/bold]\n"
        f"Kind: {config.layout_kind.value}\n"
        f"Canvas: {config.width:g} × {config.height:g}\n"
        f"Nodes: {graph.node_count}, Edges: {graph.edge_count}\n"
        f"Iterations: {config.iterations}",
        title="📐 Layout",
    ))

    final = None
    with LayoutWorker(LayoutEngine(defaults)) as worker:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            console=console,
        ) as progress:
            task = progress.add_task("Computing layout...", total=100)
            worker.submit(graph, config)
            while final is None:
                finished = worker.wait(timeout=0.1)
                for message in worker.poll():
                    if message.type is MessageType.ERROR:
                        console.print(f"[red]Layout failed: {message.error}[/red]")
                        raise typer.Exit(1)
                    if message.snapshot is not None:
                        progress.update(task, completed=message.snapshot.progress)
                        if message.type is MessageType.COMPLETE:
                            final = message.snapshot
                if finished and final is None:
                    console.print("[red]Layout finished without a result[/red]")
                    raise typer.Exit(1)

    save_json(
        output_file,
        {
            "layout_kind": final.layout_kind.value,
            "positions": {node_id: [p.x, p.y] for node_id, p in final.positions.items()},
        },
    )
    console.print(f"\n[bold green]✓ Positions for {len(final.positions)} nodes written to {output_file}[/bold green]")


# ─────────────────────────────────────────────────────────────────────────────
# Info Command
# ─────────────────────────────────────────────────────────────────────────────


@app.command()
def info():
    """
    ℹ️ Show system information and configuration.

    Displays:
      • Version information
      • Layout and interaction defaults
      • Data paths and their existence status
    """
    from planit_graph import __version__
    from planit_graph.shared.config import get_settings

    settings = get_settings()

    console.print(Panel(
        f"[bold]Planit Graph[/bold]\n"
        f"Version: {__version__}\n"
        f"Config: config/settings.yaml",
        title="ℹ️ Info",
    ))

    console.print("\n[bold]Layout Defaults:[/bold]")
    table = Table()
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("kind", settings.get_effective_layout_kind())
    table.add_row("canvas", f"{settings.layout.width:g} × {settings.layout.height:g}")
    table.add_row("strength", f"{settings.layout.strength:g}")
    table.add_row("distance", f"{settings.layout.distance:g}")
    table.add_row("iterations", str(settings.layout.iterations))
    table.add_row("warm start", str(settings.layout.warm_start))
    table.add_row("zoom range", f"{settings.interaction.min_zoom:g} – {settings.interaction.max_zoom:g}")
    console.print(table)

    console.print("\n[bold]Data Paths:[/bold]")
    resolved_paths = settings.resolved_paths
    path_dict = {
        "data_dir": resolved_paths.data_dir,
        "courses_file": resolved_paths.courses_file,
        "relations_file": resolved_paths.relations_file,
        "output_dir": resolved_paths.output_dir,
    }
    for name, path in path_dict.items():
        exists = "✓" if path.exists() else "✗"
        console.print(f"  {name}: {path} [{exists}]")


# ─────────────────────────────────────────────────────────────────────────────
# Entry Point
# ─────────────────────────────────────────────────────────────────────────────


def cli():
    """CLI entry point."""
    from planit_graph.shared.logging import setup_logging_from_settings

    setup_logging_from_settings()
    app()


if __name__ == "__main__":
    cli()
