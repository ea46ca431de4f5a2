"""CLI interface for bsky-archive.

Commands:
    archive - Archive a thread to markdown (or a zip with images)
    setup   - Save default output preferences interactively
    config  - Update saved preferences from flags
    status  - Show current preferences
"""

import sys
from pathlib import Path

import click

from .archive import archive_thread
from .client import BlueskyClient
from .config import CONFIG_FILE, config_exists, load_config, save_config
from .errors import ArchiveError
from .logging_config import setup_logging
from .markdown import (
    FORMAT_OPTIONS,
    MEDIA_DOWNLOAD,
    MEDIA_OPTIONS,
    RenderOptions,
    render_thread,
)
from .media import build_image_map, collect_images, write_archive_zip
from .parser import parse_post_url


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--config", type=click.Path(), default=None, help="Config file path")
@click.pass_context
def main(ctx, verbose, config):
    """Bluesky Thread Archiver — Save a thread to markdown."""
    setup_logging(debug=verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config) if config else CONFIG_FILE


def _load_config_or_exit(config_path: Path):
    try:
        return load_config(config_path)
    except ArchiveError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("url")
@click.option(
    "--media",
    type=click.Choice(MEDIA_OPTIONS),
    default=None,
    help="How to handle images (default from config)",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMAT_OPTIONS),
    default=None,
    help="Markdown style (default from config)",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory to write the archive to",
)
@click.option(
    "--stdout", "to_stdout", is_flag=True, help="Print markdown instead of writing a file"
)
@click.option(
    "--timeout",
    type=float,
    default=None,
    help="Give up if the whole archive takes longer than this many seconds",
)
@click.pass_context
def archive(ctx, url, media, fmt, output_dir, to_stdout, timeout):
    """Archive the thread at URL.

    URL is a post link like https://bsky.app/profile/handle/post/rkey.
    """
    config = _load_config_or_exit(ctx.obj["config_path"])
    media = media or config.media
    fmt = fmt or config.format
    out_dir = Path(output_dir) if output_dir else config.output_dir

    if to_stdout and media == MEDIA_DOWNLOAD:
        click.echo("Error: --stdout cannot be used with --media download.", err=True)
        sys.exit(1)

    options = RenderOptions(media=media, format=fmt)

    try:
        base_name = f"bsky-{parse_post_url(url).rkey}"
        with BlueskyClient(
            base_url=config.base_url,
            timeout=config.timeout,
            total_timeout=timeout,
        ) as client:
            if not to_stdout:
                click.echo("Fetching thread from Bluesky...", err=True)
            thread = archive_thread(url, client)

            if to_stdout:
                click.echo(render_thread(thread, options))
                return

            click.echo(f"Found {len(thread.posts)} posts in the main thread.", err=True)

            if media == MEDIA_DOWNLOAD:
                images = collect_images(thread.posts)
                markdown = render_thread(thread, options, build_image_map(images))
                click.echo(f"Downloading {len(images)} images...", err=True)
                path = write_archive_zip(
                    markdown, images, base_name, out_dir, client.download_image
                )
            else:
                markdown = render_thread(thread, options)
                out_dir.mkdir(parents=True, exist_ok=True)
                path = out_dir / f"{base_name}.md"
                path.write_text(markdown, encoding="utf-8")

    except ArchiveError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Wrote {path}")


@main.command()
@click.pass_context
def setup(ctx):
    """Save default media and format preferences."""
    config_path = ctx.obj["config_path"]
    config = _load_config_or_exit(config_path)

    click.echo("Bluesky Thread Archiver — Setup")
    click.echo("=" * 40)
    click.echo("Media: none (text only), inline (link images), download (zip)")
    config.media = click.prompt(
        "media", type=click.Choice(MEDIA_OPTIONS), default=config.media
    )
    click.echo("Format: minimal (text + handles), rich (front matter, dates, stats)")
    config.format = click.prompt(
        "format", type=click.Choice(FORMAT_OPTIONS), default=config.format
    )
    config.output_dir = Path(
        click.prompt("output_dir", default=str(config.output_dir))
    )

    save_config(config, config_path)
    click.echo(f"\nConfig saved to {config_path}")


@main.command("config")
@click.option(
    "--media",
    type=click.Choice(MEDIA_OPTIONS),
    default=None,
    help="Default media mode",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(FORMAT_OPTIONS),
    default=None,
    help="Default markdown style",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Default output directory",
)
@click.pass_context
def config_cmd(ctx, media, fmt, output_dir):
    """Update saved preferences without prompting.

    Only the given options change; the rest keep their current values.
    """
    config_path = ctx.obj["config_path"]
    config = _load_config_or_exit(config_path)

    if media is None and fmt is None and output_dir is None:
        click.echo("Nothing to change. Pass --media, --format or --output-dir.", err=True)
        sys.exit(1)

    if media is not None:
        config.media = media
    if fmt is not None:
        config.format = fmt
    if output_dir is not None:
        config.output_dir = Path(output_dir)

    save_config(config, config_path)
    click.echo(f"Config saved to {config_path}")


@main.command()
@click.pass_context
def status(ctx):
    """Show current preferences."""
    config_path = ctx.obj["config_path"]
    has_config = config_exists(config_path)

    click.echo("Bluesky Thread Archiver — Status")
    click.echo("=" * 40)
    click.echo(f"Config: {'Found' if has_config else 'Not configured'} ({config_path})")

    config = _load_config_or_exit(config_path)
    click.echo(f"Media: {config.media}")
    click.echo(f"Format: {config.format}")
    click.echo(f"Output directory: {config.output_dir}")
    click.echo(f"API: {config.base_url}")
