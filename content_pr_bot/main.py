"""CLI entry point for content-pr-bot."""

import asyncio
import json
import sys
from pathlib import Path

import click
import structlog

from content_pr_bot.config.settings import ContentSyncSettings
from content_pr_bot.engine.dispatch import LocalMaterializer, PostPublishDispatcher
from content_pr_bot.engine.orchestrator import SyncOrchestrator, ensure_unique_paths
from content_pr_bot.exceptions import ConfigurationError, ContentSyncError
from content_pr_bot.models.domain import RunOutcome
from content_pr_bot.providers.factory import create_git_provider
from content_pr_bot.sources.gc_articles import GCArticlesSource
from content_pr_bot.utils.logging_config import LOG_LEVELS, configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    type=click.Path(dir_okay=False),
    default=None,
    help="Optional YAML configuration file (environment variables fill the rest)",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    help="Logging level",
)
@click.pass_context
def cli(ctx: click.Context, config: str | None, log_level: str) -> None:
    """content-pr-bot: sync GC Articles content into the repository through one automated PR."""
    configure_logging(log_level)

    try:
        settings = ContentSyncSettings.load(config)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings}


@cli.command()
@click.option(
    "--materialize-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="After a PR is opened, also write the content under this local directory",
)
@click.pass_context
def run(ctx: click.Context, materialize_dir: str | None) -> None:
    """Run one sync: reap, reconcile, and open a PR if anything changed."""
    settings: ContentSyncSettings = ctx.obj["settings"]
    dispatcher = LocalMaterializer(materialize_dir) if materialize_dir else None

    try:
        outcome = asyncio.run(_run_sync(settings, dispatcher))
    except ContentSyncError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("run_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("run_unexpected", exc_info=True)
        sys.exit(1)

    if outcome.reaped:
        click.echo(f"Closed stale automated PRs: {', '.join(f'#{n}' for n in outcome.reaped)}")
    if outcome.pull_request is not None:
        counts = outcome.counts
        click.echo(
            f"Opened pull request: {outcome.pull_request.url} "
            f"({counts['created']} added, {counts['updated']} updated, {counts['unchanged']} unchanged)"
        )
    else:
        click.echo("No content changes; no pull request opened")


@cli.command()
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    required=True,
    help="Directory to write content into (normally a repository checkout root)",
)
@click.pass_context
def materialize(ctx: click.Context, output_dir: str) -> None:
    """Fetch content and write it to local files without touching the remote."""
    settings: ContentSyncSettings = ctx.obj["settings"]

    try:
        written = asyncio.run(_materialize(settings, Path(output_dir)))
    except ContentSyncError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("materialize_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        log.error("materialize_unexpected", exc_info=True)
        sys.exit(1)

    click.echo(f"Wrote {len(written)} files under {output_dir}")


@cli.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Validate configuration and print the resolved values."""
    settings: ContentSyncSettings = ctx.obj["settings"]
    click.echo(json.dumps(settings.masked(), indent=2))


async def _run_sync(settings: ContentSyncSettings, dispatcher: PostPublishDispatcher | None) -> RunOutcome:
    source = GCArticlesSource(settings.content)
    async with create_git_provider(settings) as git:
        orchestrator = SyncOrchestrator.from_settings(settings, git, source, dispatcher=dispatcher)
        return await orchestrator.run()


async def _materialize(settings: ContentSyncSettings, output_dir: Path) -> list[Path]:
    items = await GCArticlesSource(settings.content).fetch_content_items()
    ensure_unique_paths(items)
    return LocalMaterializer(output_dir).write_items(items)


if __name__ == "__main__":
    cli()
