"""Command line interface for the vector search demo.

Usage:
    vector-search init
    vector-search init --collection colors
    vector-search search "light red"
    vector-search search "light red" --where rand_number=3
    vector-search --override colors.limit=10 search "sky"
"""

import asyncio
import sys

import click
from loguru import logger

from vector_search.bootstrap import COLLECTIONS, VectorSearchServices
from vector_search.config import load_config
from vector_search.errors import ConfigurationError, VectorSearchError
from vector_search.index import field_filter
from vector_search.models import ScoredItem
from vector_search.startup import run_initializers
from vector_search.status import CollectionStatus, InitializationState

# Payload fields too large to print
HIDDEN_PAYLOAD_FIELDS = {"image_in_base64_string"}


def parse_condition(condition: str) -> tuple[str, str | int | bool]:
    """Parse ``key=value`` into a payload condition, coercing ints and booleans."""
    key, sep, raw = condition.partition("=")
    if not sep or not key.strip():
        raise click.BadParameter(f"Expected key=value, got {condition!r}")
    raw = raw.strip()
    if raw.lower() in {"true", "false"}:
        return key.strip(), raw.lower() == "true"
    if raw.lstrip("-").isdigit():
        return key.strip(), int(raw)
    return key.strip(), raw


def format_hit(position: int, hit: ScoredItem) -> str:
    payload = {k: v for k, v in hit.payload.items() if k not in HIDDEN_PAYLOAD_FIELDS}
    fields = ", ".join(f"{k}={v}" for k, v in payload.items())
    return f"{position}. [{hit.score:.4f}] id={hit.id} {fields}"


def echo_status(status: CollectionStatus) -> None:
    line = f"{status.name}: {status.state.value}"
    if status.error_message:
        line += f" ({status.error_message})"
    click.echo(line)


@click.group()
@click.option("--config-name", default="default", show_default=True, help="Config file name")
@click.option(
    "--override",
    "overrides",
    multiple=True,
    help="Hydra-style config override, e.g. colors.limit=10 (repeatable)",
)
@click.option("--log-level", default="INFO", show_default=True, help="Log level for stderr")
@click.pass_context
def cli(ctx: click.Context, config_name: str, overrides: tuple[str, ...], log_level: str):
    """Vector similarity search over colors and images."""
    logger.remove()
    logger.add(sys.stderr, level=log_level.upper(), format="<level>{message}</level>")
    try:
        ctx.obj = load_config(config_name, overrides=list(overrides))
    except (ConfigurationError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option(
    "--collection",
    "collections",
    type=click.Choice(COLLECTIONS),
    multiple=True,
    help="Collection to rebuild (repeatable; default: all)",
)
@click.pass_obj
def init(config, collections: tuple[str, ...]):
    """Rebuild collections from their sources."""

    async def run() -> bool:
        services = VectorSearchServices(config)
        unsubscribe = services.tracker.subscribe(echo_status)
        try:
            results = await run_initializers(services.initializers(list(collections) or None))
        finally:
            unsubscribe()
            await services.aclose()
        for name, result in results.items():
            if result.ok:
                click.echo(f"{name}: {result.value} points written")
        return all(result.ok for result in results.values())

    try:
        succeeded = asyncio.run(run())
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if not succeeded:
        sys.exit(1)


@cli.command()
@click.argument("query", type=str)
@click.option(
    "--collection",
    type=click.Choice(COLLECTIONS),
    default="colors",
    show_default=True,
    help="Collection to search",
)
@click.option("--where", "condition", default=None, help="Payload filter as key=value")
@click.pass_obj
def search(config, query: str, collection: str, condition: str | None):
    """Find the points most similar to QUERY."""
    query_filter = field_filter(*parse_condition(condition)) if condition else None

    async def run():
        services = VectorSearchServices(config)
        try:
            return await services.search_service(collection).search(query, query_filter)
        finally:
            await services.aclose()

    try:
        result = asyncio.run(run())
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    if not result.ok:
        raise click.ClickException(f"Search failed: {result.error}")
    if not result.value:
        click.echo("No results found")
        return
    for position, hit in enumerate(result.value, start=1):
        click.echo(format_hit(position, hit))


@cli.command()
@click.pass_obj
def status(config):
    """Show index health and point counts per collection."""

    async def run() -> list[str]:
        services = VectorSearchServices(config)
        try:
            if not await services.index.health_check():
                raise click.ClickException("Vector index is not reachable")
            lines = []
            for name in COLLECTIONS:
                settings = services.collection_settings(name)
                if await services.index.exists(settings.name):
                    count = await services.index.count(settings.name)
                    lines.append(f"{settings.name}: {count} points")
                else:
                    lines.append(f"{settings.name}: {InitializationState.NOT_STARTED.value}")
            return lines
        finally:
            await services.aclose()

    try:
        lines = asyncio.run(run())
    except VectorSearchError as e:
        raise click.ClickException(str(e)) from e
    for line in lines:
        click.echo(line)


if __name__ == "__main__":
    cli()
