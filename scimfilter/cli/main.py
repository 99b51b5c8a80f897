from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import click
import rich_click

import scimfilter

from ..exceptions import ConfigurationError, ScimFilterError
from ..nodes import AttributePath, Node, ValuePath, iter_comparisons
from ..parser import FilterParser, PathParser
from ..settings import ParserSettings
from .errors import CLIError, cli_error_for_exception
from .logging import configure_logging, restore_logging
from .render import RenderSettings, render_result
from .results import CommandResult, ErrorInfo


@dataclass(frozen=True, slots=True)
class CLIContext:
    output: str
    quiet: bool
    verbosity: int
    settings: ParserSettings

    @property
    def render_settings(self) -> RenderSettings:
        return RenderSettings(output=self.output, quiet=self.quiet)


def _referenced_attributes(node: Node) -> list[str]:
    if isinstance(node, AttributePath):
        return [node.full_name]
    names = [comparison.path.full_name for comparison in iter_comparisons(node)]
    if isinstance(node, ValuePath) and node.sub_attribute:
        names.append(f"{node.path.full_name}.{node.sub_attribute}")
    return list(dict.fromkeys(names))


def _parse_expression(parse: Callable[[str], Node | None], expression: str) -> Node | None:
    try:
        return parse(expression)
    except ScimFilterError as exc:
        raise cli_error_for_exception(exc) from exc


def _run_parse(
    ctx: CLIContext,
    *,
    command: str,
    expression: str,
    parse: Callable[[str], Node | None],
) -> None:
    try:
        node = _parse_expression(parse, expression)
    except CLIError as error:
        result = CommandResult(
            ok=False,
            command=command,
            input=expression,
            error=ErrorInfo(
                type=error.error_type,
                message=error.message,
                scim_type=error.scim_type,
                details=error.details,
            ),
        )
        render_result(result, settings=ctx.render_settings)
        raise click.exceptions.Exit(error.exit_code) from error

    data = None
    if node is not None:
        data = {"ast": node.to_dict(), "attributes": _referenced_attributes(node)}

    render_result(
        CommandResult(ok=True, command=command, input=expression, data=data),
        settings=ctx.render_settings,
    )


@click.group(
    name="scim-filter",
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
    cls=rich_click.RichGroup,
)
@click.option(
    "--output",
    type=click.Choice(["tree", "json"]),
    default="tree",
    show_default=True,
)
@click.option("--json", "json_flag", is_flag=True, help="Alias for --output json.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-essential stderr output.")
@click.option("-v", "verbose", count=True, help="Increase verbosity (-v, -vv).")
@click.option(
    "--max-length",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum expression length (default: $SCIM_FILTER_MAX_LENGTH or 8192).",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum parenthesis/bracket nesting (default: $SCIM_FILTER_MAX_DEPTH or 64).",
)
@click.version_option(version=scimfilter.__version__, prog_name="scim-filter")
@click.pass_context
def cli(
    click_ctx: click.Context,
    *,
    output: str,
    json_flag: bool,
    quiet: bool,
    verbose: int,
    max_length: int | None,
    max_depth: int | None,
) -> None:
    if click_ctx.invoked_subcommand is None:
        click.echo(click_ctx.get_help())
        raise click.exceptions.Exit(0)

    try:
        settings = ParserSettings.from_env()
    except ConfigurationError as e:
        raise click.UsageError(e.message) from None

    if max_length is not None or max_depth is not None:
        settings = ParserSettings(
            max_length=max_length if max_length is not None else settings.max_length,
            max_depth=max_depth if max_depth is not None else settings.max_depth,
        )

    click_ctx.obj = CLIContext(
        output="json" if json_flag else output,
        quiet=quiet,
        verbosity=verbose,
        settings=settings,
    )

    previous_logging = configure_logging(verbosity=verbose)
    click_ctx.call_on_close(lambda: restore_logging(previous_logging))


@cli.command(name="filter", cls=rich_click.RichCommand)
@click.argument("expression")
@click.pass_obj
def filter_cmd(ctx: CLIContext, expression: str) -> None:
    """Parse a SCIM filter, e.g. 'emails[type eq "work"] and active eq true'."""
    _run_parse(
        ctx,
        command="filter",
        expression=expression,
        parse=FilterParser(ctx.settings).parse,
    )


@cli.command(name="path", cls=rich_click.RichCommand)
@click.argument("expression")
@click.pass_obj
def path_cmd(ctx: CLIContext, expression: str) -> None:
    """Parse a SCIM PATCH path, e.g. 'members[value eq "2819c223"].display'."""
    _run_parse(
        ctx,
        command="path",
        expression=expression,
        parse=PathParser(ctx.settings).parse,
    )


def main() -> None:
    cli()
