"""CLI for glinfer extract|classify commands."""

import json
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table
import yaml

from glinfer.config import RunConfig
from glinfer.models.base import ModelRuntime
from glinfer.registry import get_model

app = typer.Typer()
console = Console()

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format=LOG_FORMAT,
    )


def load_config(config_path: str) -> RunConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        RunConfig instance
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path) as f:
        config_dict = yaml.safe_load(f) or {}

    return RunConfig(**config_dict)


def build_runtime(config: RunConfig) -> ModelRuntime:
    model_class = get_model(config.model)
    return model_class.from_pretrained(
        config.model_name_or_path,
        config=config.inference,
        **config.backend_args,
    )


def _resolve_labels(config: RunConfig, labels: str | None) -> list[str]:
    if labels is None:
        return list(config.labels)
    return [label.strip() for label in labels.split(",") if label.strip()]


@app.callback()
def main_options(
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level."),
) -> None:
    """Zero-shot entity extraction and classification."""
    setup_logging(log_level)


@app.command()
def extract(
    config_path: str,
    texts: list[str],
    labels: str | None = typer.Option(
        None, "--labels", "-l", help="Comma-separated labels (overrides config)."
    ),
    threshold: float | None = typer.Option(None, "--threshold", "-t"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables."),
) -> None:
    """Extract entities from one or more texts."""
    config = load_config(config_path)
    runtime = build_runtime(config)
    results = runtime.extract_entities_batch(
        texts, _resolve_labels(config, labels), threshold=threshold
    )

    if as_json:
        payload = [[entity.to_dict() for entity in entities] for entities in results]
        typer.echo(json.dumps(payload))
        return

    for text, entities in zip(texts, results):
        table = Table(title=text)
        table.add_column("Text")
        table.add_column("Label", style="cyan")
        table.add_column("Start", justify="right")
        table.add_column("End", justify="right")
        table.add_column("Score", justify="right")
        for entity in entities:
            table.add_row(
                entity.text,
                entity.label,
                str(entity.start),
                str(entity.end),
                f"{entity.score:.4f}",
            )
        console.print(table)


@app.command()
def classify(
    config_path: str,
    texts: list[str],
    labels: str | None = typer.Option(
        None, "--labels", "-l", help="Comma-separated labels (overrides config)."
    ),
    threshold: float | None = typer.Option(None, "--threshold", "-t"),
    multi_label: bool = typer.Option(False, "--multi-label", help="Score every label independently."),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text."),
) -> None:
    """Classify one or more texts against the labels."""
    config = load_config(config_path)
    runtime = build_runtime(config)
    results = runtime.classify_batch(
        texts,
        _resolve_labels(config, labels),
        threshold=threshold,
        multi_label=multi_label,
    )

    if as_json:
        typer.echo(json.dumps(results))
        return

    for text, scores in zip(texts, results):
        console.print(f"[bold]{text}[/bold]")
        for label, score in scores.items():
            console.print(f"  [cyan]{label}[/cyan]: {score:.4f}")


def main() -> None:
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
