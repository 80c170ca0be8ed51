"""CLI entry point for the event-sourced turtle."""

from __future__ import annotations

import asyncio

import click

from .core.errors import ConfigError, InvalidCommandError


def _overrides(naive_ink: bool, log_format: str | None, side: float | None) -> dict:
    overrides: dict = {}
    if naive_ink:
        overrides["processors"] = {"dedupe_ink": False}
    if log_format:
        overrides["observability"] = {"log_format": log_format}
    if side is not None:
        overrides["drawing"] = {"side_length": side}
    return overrides


def _run(drawing: str, config: str, overrides: dict, commands: list[str] | None = None) -> None:
    from .main import run

    async def _drive():
        app, turtle_id = await run(
            drawing, config_path=config, overrides=overrides, commands=commands,
        )
        return turtle_id, await app.state_of(turtle_id)

    try:
        turtle_id, state = asyncio.run(_drive())
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    except InvalidCommandError as exc:
        raise click.UsageError(str(exc)) from exc

    click.echo(f"turtle:   {turtle_id}")
    click.echo(f"position: {state.position}")
    click.echo(f"angle:    {state.angle:0.2f}")
    click.echo(f"color:    {state.color.value}")
    click.echo(f"pen:      {state.pen_state.value}")


def _common(func):
    func = click.option("--config", default="configs/default.toml", help="Config file path")(func)
    func = click.option("--naive-ink", is_flag=True, help="Use the non-deduplicating ink aggregator")(func)
    func = click.option(
        "--log-format",
        type=click.Choice(["console", "json"]),
        default=None,
        help="Override the configured log format",
    )(func)
    func = click.option("--side", type=float, default=None, help="Side length override")(func)
    return func


@click.group()
def main() -> None:
    """Event-sourced turtle graphics."""


@main.command()
@_common
def triangle(config: str, naive_ink: bool, log_format: str | None, side: float | None) -> None:
    """Draw a triangle."""
    _run("triangle", config, _overrides(naive_ink, log_format, side))


@main.command()
@click.argument("sides", type=click.IntRange(min=3))
@_common
def polygon(
    sides: int,
    config: str,
    naive_ink: bool,
    log_format: str | None,
    side: float | None,
) -> None:
    """Draw a regular polygon with SIDES sides."""
    overrides = _overrides(naive_ink, log_format, side)
    overrides.setdefault("drawing", {})["polygon_sides"] = sides
    _run("polygon", config, overrides)


@main.command("three-lines")
@_common
def three_lines(config: str, naive_ink: bool, log_format: str | None, side: float | None) -> None:
    """Draw a black, a red and a blue line."""
    _run("three-lines", config, _overrides(naive_ink, log_format, side))


@main.command("exec")
@click.argument("commands", nargs=-1, required=True)
@_common
def exec_(
    commands: tuple[str, ...],
    config: str,
    naive_ink: bool,
    log_format: str | None,
    side: float | None,
) -> None:
    """Run instructions such as "Move 100" "Turn 90" "Pen Up"."""
    _run("exec", config, _overrides(naive_ink, log_format, side), list(commands))
