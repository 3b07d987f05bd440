"""
Command-line interface for Last.fm artist sync.
"""
from pathlib import Path
from typing import Optional

import click

from ..core.config import Config
from ..core.exceptions import (
    ArtistSyncError,
    AuthFlowError,
    ConfigurationError,
    FetchError,
    TokenExchangeError,
)
from ..core.reconcile import ReconciliationEngine
from ..integrations.lastfm.client import LastFmClient
from ..integrations.spotify.auth import CredentialManager
from ..integrations.spotify.search import SpotifySearchClient
from ..storage.artists import ArtistStore
from ..storage.tokens import TokenStore


def _load_config(env_file: Optional[str]) -> Config:
    if env_file:
        return Config.from_dotenv(Path(env_file))
    return Config.from_dotenv()


def _build_credentials(config: Config, open_browser: bool) -> CredentialManager:
    token_store = TokenStore.from_url(config.redis_url or "")
    token_store.ping()
    credentials = CredentialManager(config, token_store, open_browser=open_browser)
    credentials.set_progress_callback(lambda message: click.echo(f"🔐 {message}"))
    return credentials


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load settings from this .env file",
)
@click.pass_context
def cli(ctx, verbose, debug, env_file):
    """Keep a local artist catalog in sync with Last.fm."""
    ctx.ensure_object(dict)

    try:
        config = _load_config(env_file)
    except (ArtistSyncError, ValueError) as e:
        click.echo(f"Error loading configuration: {e}", err=True)
        ctx.exit(1)

    if debug:
        config.log_level = "DEBUG"
    elif verbose:
        config.log_level = "INFO"
    config.setup_logging()

    ctx.obj["config"] = config


@cli.command()
@click.option(
    "--workers",
    "-w",
    default=None,
    type=click.IntRange(0, None),
    help="Maximum concurrent pages (0 = one per page)",
)
@click.option("--no-browser", is_flag=True, help="Do not open the authorize URL")
@click.pass_context
def sync(ctx, workers, no_browser):
    """Sync Last.fm artists into the local catalog."""
    config = ctx.obj["config"]
    if workers is not None:
        config.max_workers = workers

    try:
        config.validate()
        config.ensure_directories()

        credentials = _build_credentials(config, open_browser=not no_browser)
        click.echo("🔐 Checking Spotify credentials...")
        credentials.ensure_tokens()

        store = ArtistStore(config.database_path)
        engine = ReconciliationEngine(
            store=store,
            fetcher=LastFmClient(config),
            enrichment=SpotifySearchClient(
                credentials.access_token, timeout=config.request_timeout
            ),
            max_workers=config.max_workers,
        )

        click.echo(f"🎵 Syncing Last.fm library of {config.lastfm_username}...")
        try:
            result = engine.run()
        finally:
            store.close()

    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        ctx.exit(1)
    except (AuthFlowError, TokenExchangeError) as e:
        click.echo(f"❌ Authentication failed: {e}", err=True)
        ctx.exit(1)
    except FetchError as e:
        click.echo(f"❌ Could not read Last.fm library: {e}", err=True)
        ctx.exit(1)
    except ArtistSyncError as e:
        click.echo(f"❌ Sync failed: {e}", err=True)
        ctx.exit(1)

    click.echo("\n📊 Sync Results:")
    click.echo(f"  Pages: {result.total_pages}")
    click.echo(f"  Processed: {result.processed}")
    click.echo(f"  Added: {result.added}")
    click.echo(f"  Updated: {result.updated}")
    click.echo(f"  Unchanged: {result.unchanged}")
    click.echo(f"  Skipped: {result.skipped}")
    click.echo(f"  Failed: {result.failed}")

    if result.failed_pages:
        click.echo(f"\n⚠️  {result.failed_pages} pages could not be processed")
        for error in result.errors[:10]:
            click.echo(f"    {error}")

    click.echo(f"\n✅ Sync completed with {result.writes} writes.")


@cli.command()
@click.option("--no-browser", is_flag=True, help="Do not open the authorize URL")
@click.pass_context
def auth(ctx, no_browser):
    """Obtain or refresh Spotify credentials without syncing."""
    config = ctx.obj["config"]

    try:
        config.validate()
        credentials = _build_credentials(config, open_browser=not no_browser)
        credentials.ensure_tokens()
    except ArtistSyncError as e:
        click.echo(f"❌ Authentication failed: {e}", err=True)
        ctx.exit(1)

    expiry = credentials.token_expiry()
    click.echo("✅ Spotify credentials are valid")
    if expiry is not None:
        click.echo(f"  Access token expires at: {expiry.isoformat()}")


@cli.command()
@click.pass_context
def init_db(ctx):
    """Create the artist table if it does not exist."""
    config = ctx.obj["config"]

    try:
        store = ArtistStore(config.database_path)
        try:
            store.create_schema()
            count = store.count()
        finally:
            store.close()
    except ArtistSyncError as e:
        click.echo(f"❌ Failed to initialize database: {e}", err=True)
        ctx.exit(1)

    click.echo(f"✅ Artist database ready at {config.database_path} ({count} artists)")


@cli.command()
@click.pass_context
def config_info(ctx):
    """Display configuration information."""
    config = ctx.obj["config"]

    def status(value) -> str:
        return "✅ Set" if value else "❌ Not set"

    click.echo("⚙️  Configuration:")
    click.echo(f"  Last.fm user: {config.lastfm_username or '❌ Not set'}")
    click.echo(f"  Last.fm API key: {status(config.lastfm_api_key)}")
    click.echo(f"  Spotify client id: {status(config.spotify_client_id)}")
    click.echo(f"  Spotify client secret: {status(config.spotify_client_secret)}")
    click.echo(f"  Redirect URI: {config.redirect_uri or '❌ Not set'}")
    click.echo(f"  Token store: {status(config.redis_url)}")
    click.echo(f"  Artist database: {config.database_path}")
    click.echo(f"  Callback listener: {config.callback_host}:{config.callback_port}")
    workers = config.max_workers if config.max_workers > 0 else "One per page"
    click.echo(f"  Workers: {workers}")
    click.echo(f"  Log level: {config.log_level}")

    env_file = Path(".env")
    if env_file.exists():
        click.echo("  Environment file: ✅ Found (.env)")
    else:
        click.echo("  Environment file: ❌ Not found (.env)")


if __name__ == "__main__":
    cli()
