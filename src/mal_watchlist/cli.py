"""Command-line interface for the MAL watch-list organizer."""

import logging
import sys
from typing import Optional

import click

from .api_client import WatchListClient
from .config import LOG_LEVELS, Settings, get_settings
from .constants import MAL_ANIME_URL
from .errors import AuthenticationError, ListNotReadyError, SaveError, WatchListError
from .models import ListPayload
from .reconciler import entry_lookup
from .session import SessionStore, open_login
from .view import WatchListView

logger = logging.getLogger(__name__)

BUCKET_TITLES = [
    ("watching_released", "Finished, not completed"),
    ("watching_releasing", "Releasing, not completed"),
    ("unwatched_prequel", "Prequel not watched"),
    ("sequel_not_in_list", "Sequels not in list"),
    ("upcoming_sequels", "Upcoming sequels"),
]


def setup_logging(level: str):
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


def _build_client(settings: Settings) -> WatchListClient:
    """Create an API client using the env token or the stored session."""
    token = settings.session_token or SessionStore(settings.session_file).get_token()
    return WatchListClient.from_settings(settings, session_token=token)


def _fail(message: str, exit_code: int = 1):
    click.echo(f"Error: {message}", err=True)
    sys.exit(exit_code)


def _auth_failed():
    logger.error("Session is missing or expired")
    click.echo("Not logged in. Run: mal-watchlist login", err=True)
    sys.exit(1)


def _title(payload: ListPayload, anime_id: int) -> str:
    for anime in payload.animes:
        if anime.id == anime_id:
            return anime.title
    return f"#{anime_id} (not in catalog)"


def _load_view(settings: Settings) -> WatchListView:
    view = WatchListView(_build_client(settings))
    try:
        view.refresh()
    except AuthenticationError:
        _auth_failed()
    except WatchListError as e:
        _fail(str(e))
    return view


def _print_order(view: WatchListView):
    lookup = entry_lookup(view.payload.list_entries)
    for position, anime_id in enumerate(view.order, start=1):
        entry = lookup.get(anime_id)
        priority = entry.watch_priority if entry else 0
        status = entry.watch_status.value if entry else "-"
        click.echo(f"{position:>4}. [{priority:>4}] {_title(view.payload, anime_id)} ({status})")


def _save(view: WatchListView):
    try:
        view.save()
    except AuthenticationError:
        _auth_failed()
    except SaveError as e:
        _fail(f"{e} (nothing was lost, try again)")
    click.echo("Order saved.")


@click.group()
@click.version_option(version="0.1.0")
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS),
    default=None,
    help="Logging level (defaults to the config file)",
)
def main(log_level: Optional[str]):
    """Organize a MyAnimeList watch list."""
    settings = get_settings()
    setup_logging(log_level or settings.log_level)


@main.command()
@click.option("--token", help="Session token to store instead of prompting")
@click.option("--no-browser", is_flag=True, help="Only print the login URL")
def login(token: Optional[str], no_browser: bool):
    """Log in through MyAnimeList and store the session token."""
    settings = get_settings()
    store = SessionStore(settings.session_file)

    if not token:
        if no_browser:
            click.echo(f"Log in at: {WatchListClient.from_settings(settings).login_url()}")
        else:
            url = open_login(settings.api_url)
            click.echo(f"If the browser doesn't open, visit this URL:\n{url}\n")
        token = click.prompt("Paste the session token", hide_input=True)

    client = WatchListClient.from_settings(settings, session_token=token)
    try:
        user = client.get_current_user()
    except AuthenticationError:
        _fail("The session token was rejected")
    except WatchListError as e:
        _fail(str(e))

    store.save_token(token)
    click.echo(f"Logged in as {user.name}")


@main.command()
def logout():
    """Forget the stored session."""
    SessionStore(get_settings().session_file).clear()
    click.echo("Logged out.")


@main.command()
def whoami():
    """Show the user owning the current session."""
    settings = get_settings()
    try:
        user = _build_client(settings).get_current_user()
    except AuthenticationError:
        _auth_failed()
    except WatchListError as e:
        _fail(str(e))
    click.echo(f"{user.name} (id={user.id}, mal_id={user.mal_id})")


@main.command(name="list")
def list_buckets():
    """Show the classification buckets of the watch list."""
    view = _load_view(get_settings())
    click.echo(f"Import status: {view.import_status.value}")
    for field, heading in BUCKET_TITLES:
        ids = getattr(view.buckets, field)
        click.echo(f"\n=== {heading} ({len(ids)}) ===")
        for anime_id in ids:
            click.echo(f"  - {_title(view.payload, anime_id)}")


@main.command()
def order():
    """Show the current watch order."""
    view = _load_view(get_settings())
    _print_order(view)
    if view.pending:
        click.echo("\nPriorities on the server are not contiguous; save to normalize.")


@main.command()
@click.argument("moved_id", type=int)
@click.argument("target_id", type=int)
@click.option("--dry-run", is_flag=True, help="Show the new order without saving")
def move(moved_id: int, target_id: int, dry_run: bool):
    """Move MOVED_ID into the position of TARGET_ID and save."""
    view = _load_view(get_settings())
    try:
        view.move(moved_id, target_id)
    except ListNotReadyError as e:
        _fail(str(e))

    if not view.has_unsaved_changes:
        click.echo("Nothing to change.")
        return

    if dry_run:
        click.echo("=== DRY RUN - No changes were made ===")
        _print_order(view)
        return
    _save(view)


@main.command()
@click.argument("anime_id", type=int)
def front(anime_id: int):
    """Bring ANIME_ID to the front of the watch order and save."""
    view = _load_view(get_settings())
    try:
        view.bring_to_front(anime_id)
    except ListNotReadyError as e:
        _fail(str(e))

    if not view.has_unsaved_changes:
        click.echo("Nothing to change.")
        return
    _save(view)


@main.command()
@click.argument("anime_id", type=int)
def show(anime_id: int):
    """Show ANIME_ID with its related series and watch status."""
    settings = get_settings()
    try:
        payload = _build_client(settings).fetch_anime(anime_id)
    except AuthenticationError:
        _auth_failed()
    except WatchListError as e:
        _fail(str(e))

    lookup = entry_lookup(payload.list_entries)
    for anime in payload.animes:
        entry = lookup.get(anime.id)
        watch = entry.watch_status.value if entry else "not in list"
        marker = "*" if anime.id == anime_id else " "
        click.echo(f"{marker} {anime.title} [{anime.status.value}] - {watch}")
        click.echo(f"    {MAL_ANIME_URL.format(anime_id=anime.id)}")


@main.command()
@click.option("--port", type=int, default=None, help="Web UI port")
@click.option("--host", type=str, default=None, help="Web UI host")
def web(port: Optional[int], host: Optional[str]):
    """Serve the watch list as a local JSON API."""
    import uvicorn
    from .web import create_app

    settings = get_settings()
    host = host or settings.web_host
    port = port or settings.web_port

    logger.info("="*60)
    logger.info("MAL Watch-List - Web Mode")
    logger.info("="*60)
    logger.info(f"Web UI: http://{host}:{port}")
    logger.info(f"Backend: {settings.api_url}")
    logger.info("="*60)

    app = create_app(WatchListView(_build_client(settings)))
    try:
        uvicorn.run(app, host=host, port=port, log_level="warning")
    except KeyboardInterrupt:
        logger.info("Web UI stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    main()
