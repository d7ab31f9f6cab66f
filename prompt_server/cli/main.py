"""Prompt server CLI — serve the catalog and inspect it locally."""

from __future__ import annotations

import json
import signal
import sys
from typing import Any

import click
import structlog

from prompt_server.config import get_settings
from prompt_server.core.errors import PromptServerError
from prompt_server.core.registry import PromptRegistry
from prompt_server.core.renderer import render_definition
from prompt_server.protocol.adapter import adapt, user_text
from prompt_server.utils.logging import setup_logging

logger = structlog.get_logger()


def _format_table(rows: list[dict], columns: list[str]) -> str:
    """Simple table formatter."""
    if not rows:
        return "No results."
    widths = {c: len(c) for c in columns}
    for row in rows:
        for c in columns:
            widths[c] = max(widths[c], len(str(row.get(c, ""))))

    header = "  ".join(c.upper().ljust(widths[c]) for c in columns)
    separator = "  ".join("-" * widths[c] for c in columns)
    lines = [header, separator]
    for row in rows:
        lines.append("  ".join(str(row.get(c, "")).ljust(widths[c]) for c in columns))
    return "\n".join(lines)


def _output(ctx: click.Context, data: Any, columns: list[str] | None = None) -> None:
    fmt = ctx.meta.get("output_format", "table")
    if fmt == "table" and isinstance(data, list) and columns:
        click.echo(_format_table(data, columns))
    else:
        click.echo(json.dumps(data, indent=2, default=str))


def _parse_pairs(pairs: tuple[str, ...]) -> dict[str, str]:
    values: dict[str, str] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"expected key=value, got '{pair}'", param_hint="--arg")
        key, value = pair.split("=", 1)
        values[key] = value
    return values


def _load_registry(ctx: click.Context, rule_file: str | None = None) -> PromptRegistry:
    settings = get_settings()
    registry: PromptRegistry = PromptRegistry(
        ctx.obj["prompts_dir"] or settings.prompts_dir,
        rule_file or settings.generate_rule_path,
        adapter=adapt,
    )
    try:
        registry.load_and_register()
    except PromptServerError as e:
        raise click.ClickException(e.message) from e
    return registry


@click.group()
@click.option("--prompts-dir", default=None, help="Directory of prompt documents")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def cli(ctx: click.Context, prompts_dir: str | None, output_format: str, log_level: str | None) -> None:
    """MCP prompt server — serve prompt templates as tools and prompts."""
    setup_logging(log_level or get_settings().log_level)
    ctx.ensure_object(dict)
    ctx.obj["prompts_dir"] = prompts_dir
    ctx.meta["output_format"] = output_format


# --- Serve ---


@cli.command()
@click.option("--stdio", is_flag=True, help="Serve over stdin/stdout")
@click.option("--addr", default=None, help="HTTP/SSE listen address, e.g. :8888")
@click.option("--rule-file", default=None, help="Prompt generation rule file")
@click.pass_context
def serve(ctx: click.Context, stdio: bool, addr: str | None, rule_file: str | None) -> None:
    """Start the MCP server."""
    from prompt_server.protocol.server import PromptServer

    settings = get_settings()
    if addr and stdio:
        logger.warning("cli.stdio_ignored", addr=addr)
    elif not addr and not stdio:
        addr = settings.default_addr

    try:
        registry = _load_registry(ctx, rule_file)
    except click.ClickException as e:
        logger.error("cli.startup_failed", error=e.message)
        ctx.exit(1)

    server = PromptServer(registry, settings)

    def _handle_signal(signum: int, frame: Any) -> None:
        logger.info("cli.signal_received", signal=signal.Signals(signum).name)
        server.stop()
        sys.exit(0)

    signal.signal(signal.SIGTERM, _handle_signal)
    signal.signal(signal.SIGINT, _handle_signal)

    try:
        server.start(addr)
    except (OSError, ValueError) as e:
        logger.error("cli.startup_failed", error=str(e))
        ctx.exit(1)
    finally:
        server.stop()


# --- Catalog commands ---


@cli.command("list")
@click.pass_context
def list_prompts(ctx: click.Context) -> None:
    """List loaded prompts."""
    registry = _load_registry(ctx)
    snapshot = registry.snapshot
    rows = [
        {"name": name, "description": snapshot.definitions[name].description}
        for name in registry.list_names()
    ]
    _output(ctx, rows, ["name", "description"])


@cli.command()
@click.argument("name")
@click.pass_context
def show(ctx: click.Context, name: str) -> None:
    """Show a prompt definition."""
    registry = _load_registry(ctx)
    definition = registry.lookup(name)
    if definition is None:
        raise click.ClickException(f"Prompt '{name}' not found")
    click.echo(json.dumps(definition.model_dump(mode="json"), indent=2))


@cli.command()
@click.argument("name")
@click.option("--arg", "pairs", multiple=True, help="key=value pairs")
@click.pass_context
def render(ctx: click.Context, name: str, pairs: tuple[str, ...]) -> None:
    """Render a prompt the way its tool would."""
    registry = _load_registry(ctx)
    definition = registry.lookup(name)
    if definition is None:
        raise click.ClickException(f"Prompt '{name}' not found")
    click.echo(user_text(render_definition(definition, _parse_pairs(pairs))))


if __name__ == "__main__":
    cli()
