"""CLI entry point for gateway event tooling."""

from __future__ import annotations

import json
import sys

import click

from .core.enums import LogFormat
from .core.errors import ConfigError, DecodeError


@click.group()
def main() -> None:
    """Discord gateway event decoding tools."""


@main.command()
@click.argument("capture", type=click.Path(exists=True, dir_okay=False))
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option("--log-level", default=None, help="Log level override (DEBUG, INFO, ...)")
@click.option(
    "--log-format",
    type=click.Choice([f.value for f in LogFormat]),
    default=None,
    help="Log renderer override",
)
@click.option("--max-handlers", default=None, type=int, help="Bound on concurrently running handlers")
def replay(
    capture: str,
    config: str | None,
    log_level: str | None,
    log_format: str | None,
    max_handlers: int | None,
) -> None:
    """Replay a JSON Lines gateway capture and print every decoded event."""
    import asyncio

    from .main import run_replay

    overrides: dict = {}
    if log_level:
        overrides.setdefault("observability", {})["log_level"] = log_level
    if log_format:
        overrides.setdefault("observability", {})["log_format"] = log_format
    if max_handlers is not None:
        overrides.setdefault("dispatch", {})["max_concurrent_handlers"] = max_handlers

    try:
        summary = asyncio.run(
            run_replay(capture, click.echo, config_path=config, overrides=overrides)
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        f"-- {summary.end_reason}: {summary.events_received} received, "
        f"{summary.events_dispatched} dispatched, "
        f"{summary.decode_errors} undecodable",
        err=True,
    )


@main.command()
@click.argument("event_name")
@click.argument("payload", required=False)
def decode(event_name: str, payload: str | None) -> None:
    """Decode one payload (argument or stdin) and print the event as JSON."""
    from .decoding.decoder import decode_event

    raw = payload if payload is not None else sys.stdin.read()
    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"Payload is not valid JSON: {exc.msg}") from exc

    try:
        event = decode_event(event_name, document)
    except DecodeError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(
        json.dumps(
            {"variant": type(event).__name__, "event": event.model_dump(mode="json")},
            indent=2,
        )
    )


@main.command()
def events() -> None:
    """List event names with a dedicated decoding rule."""
    from .decoding.decoder import known_event_names

    for name in known_event_names():
        click.echo(name)


if __name__ == "__main__":
    main()
