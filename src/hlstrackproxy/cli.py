"""Command-line interface for hlstrackproxy."""

import json
import sys
from pathlib import Path

import click

from hlstrackproxy import __version__
from hlstrackproxy.config import load_config
from hlstrackproxy.core.registry import TrackRegistry
from hlstrackproxy.core.rewriter import ManifestRewriter
from hlstrackproxy.core.urls import is_absolute_http_url
from hlstrackproxy.models.track import descriptors_from_api
from hlstrackproxy.utils.logger import get_logger, setup_logging


def _load_tracks(path):
    try:
        return descriptors_from_api(json.loads(Path(path).read_text(encoding="utf-8")))
    except (OSError, ValueError) as e:
        raise click.BadParameter(f"Cannot read tracks from {path}: {e}") from e


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (defaults to built-in defaults)",
)
@click.pass_context
def cli(ctx, config):
    """hlstrackproxy - local HLS proxy that labels audio tracks."""
    try:
        cfg = load_config(config)
        ctx.ensure_object(dict)
        ctx.obj["config"] = cfg

        setup_logging(cfg.logging)

    except Exception as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--origin", default=None, help="Origin manifest URL to print a proxied URL for")
@click.option(
    "--tracks",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Content API audio track JSON to register",
)
@click.pass_context
def serve(ctx, origin, tracks):
    """Run the proxy in the foreground."""
    from hlstrackproxy.server import HLSProxyServer

    config = ctx.obj["config"]
    logger = get_logger(__name__)

    if origin and not is_absolute_http_url(origin):
        raise click.BadParameter("must be an absolute http(s) URL", param_hint="--origin")

    registry = TrackRegistry()
    server = HLSProxyServer(config, registry)

    try:
        port = server.start()
    except Exception as e:
        click.secho(f"✗ Could not start proxy: {e}", fg="red", err=True)
        sys.exit(1)

    click.echo(f"Listening on {config.server.host}:{port}")
    if origin:
        descriptors = _load_tracks(tracks) if tracks else []
        click.echo(f"Proxied URL: {server.proxied_url(origin, descriptors)}")
    click.echo("Press Ctrl+C to stop")

    try:
        server.wait()
    except KeyboardInterrupt:
        logger.info("Proxy interrupted by user")
    finally:
        server.stop()
        click.echo("\nProxy stopped")


@cli.command()
@click.argument("manifest", type=click.Path(exists=True, path_type=Path))
@click.option("--base-url", required=True, help="URL the manifest was fetched from")
@click.option(
    "--tracks",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Content API audio track JSON",
)
@click.option(
    "--proxy-base",
    default="http://127.0.0.1:8080",
    show_default=True,
    help="Prefix for proxied playlist URLs",
)
def rewrite(manifest, base_url, tracks, proxy_base):
    """Rewrite a manifest file and print the result."""
    if not is_absolute_http_url(base_url):
        raise click.BadParameter("must be an absolute http(s) URL", param_hint="--base-url")

    registry = TrackRegistry()
    if tracks:
        registry.register(_load_tracks(tracks))

    text = manifest.read_text(encoding="utf-8")
    result = ManifestRewriter(proxy_base).rewrite(text, base_url, registry.current())
    click.echo(result, nl=False)


@cli.command()
def version():
    """Show version information."""
    click.echo(f"hlstrackproxy v{__version__}")


def main():
    """Entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()
