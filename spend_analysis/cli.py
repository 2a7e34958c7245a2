"""CLI for the ``spend_analysis`` package.

Exposes callable command handlers (``cmd_analyze``, ``cmd_transactions``,
``cmd_insights``) that return a process exit code, and a Typer-based console
interface wrapping them. Environment variables (``OPENAI_API_KEY`` and the
``SPEND_ANALYSIS_*`` settings) are loaded from a local ``.env`` with
``python-dotenv`` before any command runs. Business logic lives in
``spend_analysis.api`` and the modules it composes.
"""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .aggregate import DEFAULT_PROFILE, PROFILES, AggregationProfile
from .logging_setup import configure_logging, get_logger
from .models import IngestResult

_logger = get_logger("spend_analysis.cli")

# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_concurrency(n_files: int, requested: int | None = None) -> int:
    """Resolve a worker count for per-file parsing.

    Honors ``requested`` first, then ``SPEND_ANALYSIS_MAX_WORKERS``; caps at
    ``n_files`` and 32 and never goes below 1. Defaults to sequential.
    """

    value = requested
    if value is None:
        env_workers = os.getenv("SPEND_ANALYSIS_MAX_WORKERS")
        try:
            value = int(env_workers) if env_workers else None
        except ValueError:
            value = None
    if value is None or value < 1:
        return 1
    return max(1, min(value, n_files, 32))


def _resolve_profile(expanded: bool) -> AggregationProfile:
    if expanded:
        return PROFILES["expanded"]
    env_val = (os.getenv("SPEND_ANALYSIS_PROFILE") or "").strip().lower()
    return PROFILES.get(env_val, DEFAULT_PROFILE)


def _print_diagnostics(messages: Sequence[str]) -> None:
    for msg in messages:
        print(f"Warning: {msg}", file=sys.stderr)


def _load(paths: Sequence[Path], *, concurrency: int | None) -> IngestResult | int:
    """Ingest ``paths``; return the result or an exit code on failure."""

    from .api import ingest_paths
    from .errors import BatchFailed

    try:
        result = ingest_paths(
            paths, concurrency=_resolve_concurrency(len(paths), concurrency)
        )
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except PermissionError as e:
        print(f"Error: Permission denied: {e.filename}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: Unexpected failure reading '{e.filename}': {e}", file=sys.stderr)
        return 1
    except BatchFailed as e:
        print(f"Error processing transaction files: {e}", file=sys.stderr)
        return 1

    _print_diagnostics(result.messages)
    return result


# ---- Command handlers --------------------------------------------------------


def cmd_analyze(
    paths: Sequence[Path],
    *,
    as_json: bool = False,
    expanded: bool = False,
    concurrency: int | None = None,
) -> int:
    """Ingest ``paths`` and print the statistics summary (or JSON) to stdout."""

    from .aggregate import aggregate
    from .report import render_summary

    loaded = _load(paths, concurrency=concurrency)
    if isinstance(loaded, int):
        return loaded

    stats = aggregate(loaded.transactions, profile=_resolve_profile(expanded))
    if as_json:
        print(json.dumps(stats.to_dict(), indent=2))
    else:
        print(render_summary(stats))
    return 0


def cmd_transactions(paths: Sequence[Path], *, concurrency: int | None = None) -> int:
    """Print the normalized transactions of ``paths`` as a JSON array."""

    loaded = _load(paths, concurrency=concurrency)
    if isinstance(loaded, int):
        return loaded
    print(json.dumps([t.to_dict() for t in loaded.transactions], indent=2))
    return 0


def cmd_insights(
    paths: Sequence[Path], *, model: str | None = None, concurrency: int | None = None
) -> int:
    """Ingest ``paths`` and print AI-generated insights.

    Requires ``OPENAI_API_KEY`` (checked before any file is read).
    """

    from .errors import InsightsError
    from .insights import generate_insights

    if not os.getenv("OPENAI_API_KEY"):
        print("Error: OPENAI_API_KEY is not set in the environment.", file=sys.stderr)
        return 1

    loaded = _load(paths, concurrency=concurrency)
    if isinstance(loaded, int):
        return loaded

    try:
        insights = generate_insights(list(loaded.transactions), model=model)
    except InsightsError as e:
        print(f"Error: insights failed: {e}", file=sys.stderr)
        return 1

    for i, insight in enumerate(insights, start=1):
        print(f"{i}. {insight.title} [{insight.category}]")
        print(f"   {insight.description}")
        print(f"   Tip: {insight.recommendation}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Analyze bank CSV exports with arbitrary column layouts. "
        "Loads settings (e.g. OPENAI_API_KEY) from a local .env before running."
    ),
)

PathsArg = Annotated[
    list[Path],
    typer.Argument(
        help="One or more CSV files exported from a bank or card provider.",
        dir_okay=False,
        file_okay=True,
        exists=False,  # handlers report missing files with a clear message
    ),
]

ConcurrencyOpt = Annotated[
    int | None,
    typer.Option(
        "--concurrency",
        help="Files parsed in parallel (default: SPEND_ANALYSIS_MAX_WORKERS or 1).",
    ),
]


@app.command("analyze")
def analyze_cmd(
    paths: PathsArg,
    as_json: Annotated[bool, typer.Option("--json", help="Emit statistics as JSON.")] = False,
    expanded: Annotated[
        bool, typer.Option("--expanded", help="Keep the top 6 categories instead of 4.")
    ] = False,
    concurrency: ConcurrencyOpt = None,
) -> None:
    """Print spending statistics for the given CSV files."""

    raise typer.Exit(
        cmd_analyze(paths, as_json=as_json, expanded=expanded, concurrency=concurrency)
    )


@app.command("transactions")
def transactions_cmd(paths: PathsArg, concurrency: ConcurrencyOpt = None) -> None:
    """Print normalized transactions as JSON."""

    raise typer.Exit(cmd_transactions(paths, concurrency=concurrency))


@app.command("insights")
def insights_cmd(
    paths: PathsArg,
    model: Annotated[
        str | None, typer.Option(help="Override SPEND_ANALYSIS_OPENAI_MODEL.")
    ] = None,
    concurrency: ConcurrencyOpt = None,
) -> None:
    """Print AI-generated insights for the given CSV files."""

    raise typer.Exit(cmd_insights(paths, model=model, concurrency=concurrency))


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option(help="Log level (falls back to SPEND_ANALYSIS_LOG_LEVEL, then INFO)."),
    ] = None,
) -> None:
    """Load ``.env`` from the working directory and configure logging."""

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level)
    _logger.debug("cli:start")


def main() -> None:  # pragma: no cover - console script entry
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
