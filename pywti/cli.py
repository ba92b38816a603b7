"""CLI interface for pywti."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from .api import WtiClient
from .config import config
from .exceptions import WtiAPIError, WtiError
from .output import OutputFormatter
from .project import find_master, list_project_files, select_files
from .sync import FileDescriptor, SyncEngine, UploadOptions

logger = logging.getLogger(__name__)


def _make_client(ctx: Any) -> WtiClient:
    """Create an API client from the context settings, or exit."""
    out: OutputFormatter = ctx.obj["out"]
    api_key = ctx.obj.get("api_key")

    if not config.is_configured() and not api_key:
        out.error("API key not configured.")
        out.info("Run 'pywti init' to configure your API key")
        ctx.exit(1)

    try:
        return WtiClient(api_key=api_key)
    except WtiError as e:
        out.error(str(e))
        ctx.exit(1)


def _load_project(ctx: Any, client: WtiClient) -> list[FileDescriptor]:
    """List the project files, or exit on error."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        return list_project_files(client, base_path=ctx.obj["base_dir"])
    except WtiError as e:
        out.error(f"Could not load project: {e}")
        client.close()
        ctx.exit(1)


def _unique_paths(files: tuple[Path, ...]) -> list[Path]:
    """Drop paths naming a file already given, keeping the first spelling."""
    seen: set = set()
    unique = []
    for f in files:
        key = f.resolve()
        if key not in seen:
            seen.add(key)
            unique.append(f)
    return unique


def _finish(ctx: Any, engine: SyncEngine, stats: dict) -> None:
    """Display the summary and exit with status 1 if any file failed."""
    engine.display_summary(stats)
    engine.client.close()
    if stats["failed"]:
        ctx.exit(1)


@click.group()
@click.option("--api-key", "-k", envvar="WTI_API_KEY", help="Project API key")
@click.option(
    "--base-dir",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Directory the project file names are relative to",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="pywti")
@click.pass_context
def main(
    ctx: Any,
    api_key: Optional[str],
    base_dir: Path,
    quiet: bool,
    verbose: bool,
) -> None:
    """pywti - Sync translation files with WebTranslateIt."""
    ctx.ensure_object(dict)
    ctx.obj["api_key"] = api_key
    ctx.obj["base_dir"] = base_dir
    ctx.obj["out"] = OutputFormatter(quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pywti").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.option(
    "--api-key",
    "-k",
    prompt="Enter your project API key",
    help="Project API key",
)
@click.pass_context
def init(ctx: Any, api_key: str) -> None:
    """Initialize pywti configuration.

    Stores your API key in ~/.config/pywti/config.json for future use.
    """
    out: OutputFormatter = ctx.obj["out"]

    out.info("Validating API key...")
    try:
        with WtiClient(api_key=api_key) as client:
            project = client.get_project()
        out.success(f"API key is valid for project '{project.get('name', '?')}'")
    except WtiAPIError as e:
        out.error(f"API key validation failed: {e}")
        if not click.confirm("Save API key anyway?", default=False):
            out.warning("Configuration cancelled.")
            ctx.exit(1)

    try:
        config.save_api_key(api_key)
    except OSError as e:
        out.error(f"Could not save configuration: {e}")
        ctx.exit(1)
    out.success(f"Configuration saved to {config.get_config_path()}")


@main.command()
@click.option("--locale", "-l", multiple=True, help="Only show these locales")
@click.pass_context
def status(ctx: Any, locale: tuple[str, ...]) -> None:
    """Show which files differ from the remote project.

    Files whose remote translation is not up to date are marked with '*'.
    """
    client = _make_client(ctx)
    descriptors = _load_project(ctx, client)
    engine = SyncEngine(client, ctx.obj["out"])

    selected = select_files(descriptors, locales=locale or None, include_master=True)
    stats = engine.status(selected)
    client.close()
    ctx.obj["out"].info(
        f"{stats['in_sync']} in sync, {stats['out_of_sync']} out of sync"
    )


@main.command()
@click.option("--force", "-f", is_flag=True, help="Download even unchanged files")
@click.option("--all", "all_files", is_flag=True, help="Also pull master files")
@click.option("--locale", "-l", multiple=True, help="Only pull these locales")
@click.option(
    "--workers", "-j", type=click.IntRange(min=1), default=1, show_default=True
)
@click.pass_context
def pull(
    ctx: Any,
    force: bool,
    all_files: bool,
    locale: tuple[str, ...],
    workers: int,
) -> None:
    """Fetch target language files from the project."""
    client = _make_client(ctx)
    descriptors = _load_project(ctx, client)
    engine = SyncEngine(client, ctx.obj["out"])

    selected = select_files(
        descriptors, locales=locale or None, include_master=all_files
    )
    stats = engine.pull(selected, force=force, max_workers=workers)
    _finish(ctx, engine, stats)


@main.command()
@click.option("--force", "-f", is_flag=True, help="Upload even unchanged files")
@click.option(
    "--locale",
    "-l",
    multiple=True,
    help="Push the target files of these locales instead of the master files",
)
@click.option("--merge", is_flag=True, help="Merge with the remote content")
@click.option(
    "--ignore-missing", is_flag=True, help="Keep segments missing from the file"
)
@click.option("--label", help="Label applied to the new segments")
@click.option("--low-priority", is_flag=True, help="Use the low-priority queue")
@click.option("--minor", is_flag=True, help="Minor changes, keep translations")
@click.option(
    "--workers", "-j", type=click.IntRange(min=1), default=1, show_default=True
)
@click.pass_context
def push(
    ctx: Any,
    force: bool,
    locale: tuple[str, ...],
    merge: bool,
    ignore_missing: bool,
    label: Optional[str],
    low_priority: bool,
    minor: bool,
    workers: int,
) -> None:
    """Upload master files (or target files with --locale) to the project."""
    client = _make_client(ctx)
    descriptors = _load_project(ctx, client)
    engine = SyncEngine(client, ctx.obj["out"])

    if locale:
        selected = select_files(descriptors, locales=locale)
    else:
        selected = select_files(
            descriptors, include_master=True, include_targets=False
        )
    options = UploadOptions(
        merge=merge,
        ignore_missing=ignore_missing,
        label=label,
        low_priority=low_priority,
        minor_changes=minor,
    )
    stats = engine.push(selected, force=force, options=options, max_workers=workers)
    _finish(ctx, engine, stats)


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--low-priority", is_flag=True, help="Use the low-priority queue")
@click.pass_context
def add(ctx: Any, files: tuple[Path, ...], low_priority: bool) -> None:
    """Create new master files in the project.

    The remote file names are relative to the base directory (-C).
    """
    client = _make_client(ctx)
    engine = SyncEngine(client, ctx.obj["out"])

    descriptors = [
        FileDescriptor(id=None, local_path=f, locale=None, project_key=client.api_key)
        for f in _unique_paths(files)
    ]
    stats = engine.add(
        descriptors, low_priority=low_priority, base_dir=ctx.obj["base_dir"]
    )
    _finish(ctx, engine, stats)


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.pass_context
def rm(ctx: Any, files: tuple[Path, ...]) -> None:
    """Delete master files (and their translations) from the project."""
    out: OutputFormatter = ctx.obj["out"]
    client = _make_client(ctx)
    descriptors = _load_project(ctx, client)
    engine = SyncEngine(client, out)

    selected = []
    unknown = 0
    for f in _unique_paths(files):
        master = find_master(descriptors, f)
        if master is None:
            out.error(f"{f} is not a master file of the project")
            unknown += 1
        else:
            selected.append(master)

    stats = engine.remove(selected)
    stats["failed"] += unknown
    stats["total"] += unknown
    _finish(ctx, engine, stats)


if __name__ == "__main__":
    main()
