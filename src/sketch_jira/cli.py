"""Command line access to the JIRA side of the plugin.

Useful for checking credentials and the attachment pipeline without a host
application running.
"""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import click

from . import __version__
from .config import config
from .connectors import JiraClient
from .errors import SketchJiraError
from .filters import Filters
from .logging import configure_logging
from .models import FileDescriptor
from .progress import ProgressCallback
from .uploads import UploadJob

PROGRESS_STEPS = 1000


def _run(ctx: click.Context, call: Callable[[JiraClient], Awaitable[Any]]) -> Any:
    """Run ``call`` with a connected client, turning plugin errors into exit 1."""

    async def runner() -> Any:
        async with JiraClient.from_config(config) as jira:
            return await call(jira)

    try:
        return asyncio.run(runner())
    except SketchJiraError as e:
        if ctx.obj["debug"]:
            raise
        click.secho(f"✗ {e.kind}: {e.message}", fg="red", err=True)
        sys.exit(1)


def _output(ctx: click.Context, data: Any, lines: list[str]) -> None:
    if ctx.obj["json"]:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        for line in lines:
            click.echo(line)


@contextmanager
def _progress_bar(ctx: click.Context, label: str) -> Iterator[ProgressCallback | None]:
    """Yield a progress callback drawing a click progress bar on stderr.

    Yields None with --json so machine output stays clean.
    """
    if ctx.obj["json"]:
        yield None
        return

    with click.progressbar(length=PROGRESS_STEPS, label=label, file=sys.stderr) as bar:

        def report(fraction: float) -> None:
            step = int(fraction * PROGRESS_STEPS) - bar.pos
            if step > 0:
                bar.update(step)

        yield report


@click.group()
@click.version_option(__version__, prog_name="sketch-jira")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--debug", is_flag=True, help="Debug logging and tracebacks on errors")
@click.pass_context
def cli(ctx: click.Context, output_json: bool, debug: bool) -> None:
    """JIRA attachments and comments from the command line.

    Reads SKETCH_JIRA_URL, SKETCH_JIRA_USER and SKETCH_JIRA_TOKEN.
    """
    ctx.ensure_object(dict)
    ctx.obj["json"] = output_json
    ctx.obj["debug"] = debug
    configure_logging("DEBUG" if debug else "WARNING")
    if not config.configured:
        click.secho("✗ SKETCH_JIRA_URL and SKETCH_JIRA_TOKEN must be set", fg="red", err=True)
        sys.exit(1)


@cli.command()
@click.pass_context
def whoami(ctx: click.Context) -> None:
    """Show the authenticated user."""
    profile = _run(ctx, lambda jira: jira.get_profile())
    _output(ctx, profile.to_dict(), [f"{profile.display_name} ({profile.name})"])


@cli.command()
@click.pass_context
def filters(ctx: click.Context) -> None:
    """List built-in and favourite filters."""
    result = _run(ctx, lambda jira: Filters(jira).load_filters())
    _output(
        ctx,
        [f.to_dict() for f in result],
        [f"{f.key:<20} {f.name}{' ★' if f.favourite else ''}" for f in result],
    )


@cli.command()
@click.argument("filter_key")
@click.pass_context
def issues(ctx: click.Context, filter_key: str) -> None:
    """Run a filter.

    FILTER_KEY: Built-in key (e.g. AssignedToMe) or favourite filter id
    """

    async def call(jira: JiraClient) -> Any:
        helper = Filters(jira)
        await helper.load_filters()
        return await helper.on_filter_changed(filter_key)

    result = _run(ctx, call)
    _output(
        ctx,
        [i.to_dict() for i in result],
        [f"{i.key:<12} {i.status or '':<14} {i.summary}" for i in result],
    )


@cli.command()
@click.argument("issue_key")
@click.pass_context
def attachments(ctx: click.Context, issue_key: str) -> None:
    """List an issue's attachments."""
    issue = _run(ctx, lambda jira: jira.get_issue(issue_key, fields=["summary", "attachment"]))
    _output(
        ctx,
        issue.to_dict(),
        [f"{a.id:<10} {a.size:>10}  {a.mime_type or '':<24} {a.filename}" for a in issue.attachments],
    )


@cli.command()
@click.argument("issue_key")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.pass_context
def upload(ctx: click.Context, issue_key: str, files: tuple[Path, ...]) -> None:
    """Upload one or more files to an issue."""

    async def call(jira: JiraClient) -> list[UploadJob]:
        jobs = [UploadJob(FileDescriptor.from_path(path), jira.upload_attachment) for path in files]
        for job in jobs:
            with _progress_bar(ctx, job.file.name) as progress:
                await job.upload(issue_key, progress)
        return jobs

    jobs = _run(ctx, call)
    _output(
        ctx,
        [job.attachment.to_dict() for job in jobs],
        [f"✓ {job.file.name} → {job.attachment.id}" for job in jobs],
    )


@cli.command()
@click.argument("url")
@click.argument("filename")
@click.option("--open", "open_file", is_flag=True, help="Open in the default viewer when done")
@click.pass_context
def download(ctx: click.Context, url: str, filename: str, open_file: bool) -> None:
    """Download an attachment's content URL."""
    with _progress_bar(ctx, filename) as progress:
        path = _run(ctx, lambda jira: jira.download_attachment(url, filename, progress))
    if open_file:
        click.launch(str(path))
    _output(ctx, {"path": str(path)}, [str(path)])


@cli.command()
@click.argument("issue_key")
@click.argument("text")
@click.pass_context
def comment(ctx: click.Context, issue_key: str, text: str) -> None:
    """Add a comment to an issue."""
    if not text.strip():
        click.secho("✗ Comment text is empty", fg="red", err=True)
        sys.exit(1)
    href = _run(ctx, lambda jira: jira.add_comment(issue_key, text))
    _output(ctx, {"href": href}, [f"✓ {href}"])


@cli.command()
@click.argument("query")
@click.pass_context
def users(ctx: click.Context, query: str) -> None:
    """Search users for mentions."""
    result = _run(ctx, lambda jira: jira.find_users_for_picker(query))
    _output(ctx, [u.to_dict() for u in result], [f"{u.name:<24} {u.display_name}" for u in result])


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
