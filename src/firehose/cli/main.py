from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from contextlib import nullcontext
from pathlib import Path
from typing import get_args

import httpx
import typer

from firehose.cli.printer import format_record
from firehose.config import DriftPolicy, FirehoseConfig
from firehose.config_loader import load_config
from firehose.errors import SchemaDrift
from firehose.pipeline.stream import iter_records, open_stream
from firehose.records.models import StatusRecord
from firehose.transport.http_stream import HttpByteSource
from firehose.utils.log_guard import LogGuard

app = typer.Typer(add_completion=False, help="firehose: decode a concatenated-JSON status feed")

logger = logging.getLogger(__name__)


def _build_config(
    config_path: str | None,
    *,
    url: str | None = None,
    username: str | None = None,
    password: str | None = None,
    capacity: int | None = None,
    drift_policy: str | None = None,
) -> FirehoseConfig:
    cfg = load_config(config_path)
    # CLI options override file and env
    if url:
        cfg.source.url = url
    if username:
        cfg.source.username = username
    if password:
        cfg.source.password = password
    if capacity is not None:
        if capacity < 1:
            raise typer.BadParameter("capacity must be at least 1", param_hint="--capacity")
        cfg.queue_capacity = capacity
    if drift_policy is not None:
        if drift_policy not in get_args(DriftPolicy):
            raise typer.BadParameter(
                f"expected one of {', '.join(get_args(DriftPolicy))}", param_hint="--drift-policy"
            )
        cfg.drift_policy = drift_policy  # type: ignore[assignment]
    return cfg


def _consume(records: Iterable[StatusRecord], limit: int | None) -> int:
    count = 0
    try:
        for record in records:
            typer.echo(format_record(record))
            count += 1
            if limit is not None and count >= limit:
                return count
    except SchemaDrift as e:
        typer.secho(f"Schema drift (fatal policy): {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=2) from e
    typer.echo("Disconnected")
    return count


@app.command("stream")
def stream(
    config: str | None = typer.Option(None, "--config", "-c", help="Path to YAML/JSON config"),
    url: str | None = typer.Option(None, "--url", help="Streaming endpoint"),
    username: str | None = typer.Option(None, "--username", "-u", help="Basic auth user"),
    password: str | None = typer.Option(None, "--password", "-p", help="Basic auth password"),
    capacity: int | None = typer.Option(None, "--capacity", help="Relay queue capacity"),
    drift_policy: str | None = typer.Option(
        None, "--drift-policy", help="Schema drift handling: fallback|skip|fatal"
    ),
    limit: int | None = typer.Option(None, "--limit", help="Stop after this many records"),
) -> None:
    """Connect to a streaming endpoint and print every decoded record."""
    cfg = _build_config(
        config,
        url=url,
        username=username,
        password=password,
        capacity=capacity,
        drift_policy=drift_policy,
    )
    with LogGuard(cfg.log_level):
        try:
            with HttpByteSource(cfg.source) as source, open_stream(source, cfg) as records:
                _consume(records, limit)
        except httpx.HTTPError as e:
            typer.secho(f"Error processing stream: {e}", err=True, fg=typer.colors.RED)
            raise typer.Exit(code=1) from e
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, shutting down.")


@app.command("replay")
def replay(
    path: str = typer.Argument(..., help="Captured stream body, or - for stdin"),
    config: str | None = typer.Option(None, "--config", "-c", help="Path to YAML/JSON config"),
    drift_policy: str | None = typer.Option(
        None, "--drift-policy", help="Schema drift handling: fallback|skip|fatal"
    ),
    limit: int | None = typer.Option(None, "--limit", help="Stop after this many records"),
) -> None:
    """Decode a captured stream body and print every record."""
    cfg = _build_config(config, drift_policy=drift_policy)
    if path != "-" and not Path(path).is_file():
        raise typer.BadParameter(f"No such file: {path}", param_hint="PATH")
    with LogGuard(cfg.log_level):
        source_cm = nullcontext(sys.stdin.buffer) if path == "-" else Path(path).open("rb")
        try:
            with source_cm as source:
                _consume(iter_records(source, cfg), limit)
        except KeyboardInterrupt:
            logger.info("Received KeyboardInterrupt, shutting down.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
