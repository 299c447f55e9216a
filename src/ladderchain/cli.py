"""CLI interface for extracting and exporting chains."""

import json
import logging
from pathlib import Path
from typing import Optional

import click
from click.core import ParameterSource
from pydantic import ValidationError

from ladderchain.core.config import ExtractOptions, LadderChainConfig
from ladderchain.core.models import InterviewGraph
from ladderchain.export import build_session_export, export_filename
from ladderchain.extraction import extract_stimulus_chains
from ladderchain.main import LadderChain


def extract_options(func):
    """Shared on/off switches; unset switches fall back to the configured defaults."""
    switches = [
        ("--require-completed/--no-require-completed", "require_completed_flag",
         "Only keep chains whose nodes are marked as completed"),
        ("--include-empty-stimuli/--no-include-empty-stimuli", "include_empty_stimuli",
         "Emit stimuli without any chain"),
        ("--include-incomplete/--no-include-incomplete", "include_incomplete_chains",
         "Keep chains that do not reach a value"),
        ("--merge-path/--no-merge-path", "merge_consequence_path",
         "Merge consequence paths and render them joined"),
        ("--check-superset/--no-check-superset", "check_super_set",
         "Drop shallow chains covered by deeper ones"),
    ]
    for flag, name, help_text in reversed(switches):
        func = click.option(flag, name, default=None, help=help_text)(func)
    return func


def _resolve_options(config: LadderChainConfig, **switches: Optional[bool]) -> ExtractOptions:
    ctx = click.get_current_context()
    chosen = {
        name: value for name, value in switches.items()
        if value is not None and ctx.get_parameter_source(name) != ParameterSource.DEFAULT
    }
    return ExtractOptions.model_validate({**config.extract.model_dump(), **chosen})


def _load_graph(path: str) -> InterviewGraph:
    """Read a graph document, or a history document carrying the graph under "tree"."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON ({e})", param_hint="GRAPH_FILE")

    if isinstance(data, dict) and "nodes" not in data and "tree" in data:
        data = data["tree"]
    if data is None:
        raise click.BadParameter("document has no interview tree", param_hint="GRAPH_FILE")

    try:
        return InterviewGraph.model_validate(data)
    except ValidationError as e:
        raise click.BadParameter(f"not an interview graph ({e.error_count()} errors)", param_hint="GRAPH_FILE")


def _emit(text: str, output: Optional[str]) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        click.echo(f"Wrote {output}")
    else:
        click.echo(text)


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to LADDERCHAIN_LOG_LEVEL or WARNING)",
)
@click.pass_context
def cli(ctx, log_level):
    """LadderChain - extract Attribute/Consequence/Value chains from interview graphs."""
    config = LadderChainConfig()
    logging.basicConfig(
        level=(log_level or config.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@extract_options
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write JSON here instead of stdout")
@click.pass_obj
def extract(config, graph_file, output, **switches):
    """Extract chains from a graph JSON file."""
    graph = _load_graph(graph_file)
    options = _resolve_options(config, **switches)

    groups = extract_stimulus_chains(graph, options)
    payload = [group.model_dump() for group in groups]
    _emit(json.dumps(payload, indent=2, ensure_ascii=False), output)


@cli.command()
@click.argument("graph_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--session-id", required=True, help="Interview session ID")
@click.option("--project", default="", help="Project topic")
@click.option("--project-slug", default="", help="Project slug")
@extract_options
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False),
    default=".",
    help="Directory the export file is written to",
)
@click.pass_obj
def export(config, graph_file, session_id, project, project_slug, output_dir, **switches):
    """Write the session export document for a graph JSON file."""
    graph = _load_graph(graph_file)
    options = _resolve_options(config, **switches)

    groups = extract_stimulus_chains(graph, options)
    document = build_session_export(
        groups,
        session_id=session_id,
        project=project,
        project_slug=project_slug,
        options=options,
    )

    target = Path(output_dir)
    target.mkdir(parents=True, exist_ok=True)
    path = target / export_filename(project_slug, session_id)
    path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
    click.echo(f"Exported {sum(len(g.chains) for g in groups)} chains to {path}")


@cli.command()
@click.argument("session_id")
@click.option("--project-slug", default=None, help="Project slug")
@extract_options
@click.option("--output", "-o", type=click.Path(dir_okay=False), default=None, help="Write JSON here instead of stdout")
@click.pass_obj
def fetch(config, session_id, project_slug, output, **switches):
    """Load a session from the interview backend and extract its chains."""
    options = _resolve_options(config, **switches)
    ladder = LadderChain(config)

    groups = ladder.extract_session(session_id, project_slug, options)
    payload = [group.model_dump() for group in groups]
    _emit(json.dumps(payload, indent=2, ensure_ascii=False), output)


if __name__ == "__main__":
    cli()
