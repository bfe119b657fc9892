# src/shadergraph/cli.py
"""shadergraph Command Line Interface.

Offline checking and repair of stored graph documents.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import typer
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from shadergraph import __version__
from shadergraph.contracts.errors import ArityOverflowError, GraphDocumentError
from shadergraph.core.config import DEFAULT_SETTINGS, EditorSettings, load_settings
from shadergraph.core.graph.integrity import attempt_fix, validate_graph
from shadergraph.core.graph.models import Graph
from shadergraph.core.graph.serialization import graph_to_dict, load_graph
from shadergraph.core.graph.uniforms import expand_uniform_data_nodes
from shadergraph.core.logging import configure_logging, get_logger, graph_log_context

__all__ = ["app"]

app = typer.Typer(
    name="shadergraph",
    help="shadergraph: check and repair shader graph documents.",
    no_args_is_help=True,
)


@dataclass(frozen=True)
class _State:
    settings: EditorSettings


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"shadergraph version {__version__}")
        raise typer.Exit()


def _load_settings_or_exit(settings_path: Path) -> EditorSettings:
    try:
        return load_settings(settings_path.expanduser())
    except (YamlParserError, YamlScannerError) as e:
        typer.echo(f"YAML syntax error in {settings_path}: {e.problem}", err=True)
        raise typer.Exit(1) from None
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {settings_path}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _load_graph_or_exit(graph_path: Path) -> Graph:
    try:
        return load_graph(graph_path)
    except FileNotFoundError:
        typer.echo(f"Error: Graph file not found: {graph_path}", err=True)
        raise typer.Exit(1) from None
    except GraphDocumentError as e:
        typer.echo(f"Error: {e}", err=True)
        if e.validation_error is not None:
            for error in e.validation_error.errors():
                loc = ".".join(str(x) for x in error["loc"])
                typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _write_graph(graph: Graph, output: Path | None) -> None:
    text = json.dumps(graph_to_dict(graph), indent=2)
    if output is None:
        typer.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Wrote {graph.node_count} nodes, {graph.edge_count} edges to {output}", err=True)


def _settings(ctx: typer.Context) -> EditorSettings:
    state = ctx.obj
    return state.settings if isinstance(state, _State) else DEFAULT_SETTINGS


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings_path: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR). Overrides settings.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """shadergraph: check and repair shader graph documents."""
    settings = _load_settings_or_exit(settings_path) if settings_path is not None else DEFAULT_SETTINGS
    level = (log_level or settings.logging.level).upper()
    if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        typer.echo(f"Error: Unknown log level: {log_level}", err=True)
        raise typer.Exit(1)
    configure_logging(json_output=json_logs or settings.logging.json_output, level=level)
    ctx.obj = _State(settings=settings)


@app.command()
def check(
    ctx: typer.Context,
    graph_path: Path = typer.Argument(..., help="Graph JSON document to check."),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Report every structural problem in a graph document.

    Exits 1 when any problem is found.
    """
    settings = _settings(ctx)
    with graph_log_context(graph_path, "check"):
        graph = _load_graph_or_exit(graph_path)
        issues = validate_graph(graph, settings.graph)
        get_logger(__name__).debug("graph_checked", issue_count=len(issues))

    if output_format == "json":
        typer.echo(
            json.dumps(
                {
                    "nodes": graph.node_count,
                    "edges": graph.edge_count,
                    "issues": [
                        {"code": i.code, "message": i.message, "node_ids": list(i.node_ids), "edge_ids": list(i.edge_ids)} for i in issues
                    ],
                }
            )
        )
    elif issues:
        typer.echo(f"{len(issues)} issue(s) in {graph_path}:")
        for issue in issues:
            typer.echo(f"  [{issue.code}] {issue.message}")
    else:
        typer.echo(f"Graph OK: {graph.node_count} nodes, {graph.edge_count} edges")

    if issues:
        raise typer.Exit(1)


@app.command()
def fix(
    ctx: typer.Context,
    graph_path: Path = typer.Argument(..., help="Graph JSON document to repair."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the repaired graph (default: stdout).",
    ),
) -> None:
    """Prune dangling edges and renumber variadic inputs."""
    settings = _settings(ctx)
    with graph_log_context(graph_path, "fix"):
        graph = _load_graph_or_exit(graph_path)
        try:
            result = attempt_fix(graph, settings.graph)
        except ArityOverflowError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from None
    typer.echo(f"Pruned {len(result.pruned_edge_ids)} dangling edge(s)", err=True)
    _write_graph(result.graph, output)


@app.command("expand-uniforms")
def expand_uniforms(
    ctx: typer.Context,
    graph_path: Path = typer.Argument(..., help="Graph JSON document to expand."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Where to write the expanded graph (default: stdout).",
    ),
) -> None:
    """Create data nodes for every declared uniform that is not yet connected."""
    settings = _settings(ctx)
    with graph_log_context(graph_path, "expand-uniforms"):
        graph = _load_graph_or_exit(graph_path)
        expanded = expand_uniform_data_nodes(graph, settings.uniforms)
    typer.echo(f"Added {expanded.node_count - graph.node_count} uniform node(s)", err=True)
    _write_graph(expanded, output)


if __name__ == "__main__":
    app()
