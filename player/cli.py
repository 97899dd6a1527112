import click
from rich.console import Console
from rich.table import Table
from rich.live import Live
from rich.logging import RichHandler
from rich.panel import Panel
from rich.text import Text
import logging
import time

# Try to import engine, handle missing libmpv
try:
    from .engine import MpvTransport
    MPV_AVAILABLE = True
except OSError:
    MPV_AVAILABLE = False

from shared.config import APP_NAME, VERSION, ClientSettings
from shared.context import ClientContext, Notifier
from shared.errors import SoundstageError, ValidationError
from shared.formatting import format_time, status_label, summarize_tracks
from shared.models import PlayerState, Track
from shared.session import AuthSession
from shared.validation import ArtistRequestForm, TrackUploadForm, UploadFile
from moderation.review import ModerationQueue, STATUS_FILTERS
from .favourites_manager import FavouritesManager
from .library import TrackList
from .likes import TrackLikes
from .listening import ListeningSession
from .sync import OptimisticSynchronizer

console = Console()


class ConsoleNotifier(Notifier):
    """Notifications printed to the terminal."""

    def info(self, message: str) -> None:
        console.print(f"[cyan]{message}[/cyan]")

    def success(self, message: str) -> None:
        console.print(f"[green]✓ {message}[/green]")

    def error(self, message: str) -> None:
        console.print(f"[red]✗ {message}[/red]")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _synchronizer(context: ClientContext) -> OptimisticSynchronizer:
    return OptimisticSynchronizer(notifier=context.notifier, max_workers=context.settings.sync_workers)


def _wait(context: ClientContext, future):
    """Block on a sync future; failures were already reported by the notifier."""
    if future is None:
        return None
    return future.result(timeout=context.settings.timeout * 2)


def _require_user(context: ClientContext):
    user = AuthSession(context).restore()
    if user is None:
        raise click.ClickException("Not signed in. Run `soundstage login` first.")
    return user


def _track_table(title: str, tracks) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold white")
    table.add_column("Artist", style="green")
    table.add_column("Duration", style="magenta")
    table.add_column("Plays", justify="right")
    table.add_column("Likes", justify="right")
    for t in tracks:
        table.add_row(str(t.id), t.title, t.artist_name, format_time(t.duration),
                      str(t.plays_count), str(t.likes_count))
    return table


@click.group()
@click.option('--verbose', '-v', is_flag=True, help="Debug logging.")
@click.version_option(VERSION, prog_name=APP_NAME)
@click.pass_context
def cli(ctx, verbose):
    """🎵 Soundstage music client"""
    settings = ClientSettings.from_env()
    _setup_logging("DEBUG" if verbose else settings.log_level)
    if ctx.obj is None:
        ctx.obj = ClientContext.create(settings, notifier=ConsoleNotifier())


@cli.command()
@click.option('--email', prompt=True)
@click.option('--password', prompt=True, hide_input=True)
@click.pass_obj
def login(context, email, password):
    """Sign in and store the session token."""
    try:
        user = AuthSession(context).login(email, password)
    except SoundstageError as e:
        raise click.ClickException(str(e))
    console.print(f"Signed in as [bold]{user.full_name or user.email}[/bold] ({user.role})")


@cli.command()
@click.pass_obj
def logout(context):
    """Forget the stored session token."""
    AuthSession(context).logout()


@cli.command()
@click.pass_obj
def whoami(context):
    """Show the signed-in profile."""
    user = _require_user(context)
    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Email", user.email)
    table.add_row("Name", user.full_name or "-")
    table.add_row("Role", user.role)
    if user.artist_name:
        table.add_row("Artist name", user.artist_name)
    console.print(table)


@cli.command()
@click.option('--search', '-s', 'query', help="Filter by title or artist.")
@click.option('--charts', is_flag=True, help="Most played first.")
@click.option('--limit', default=10, show_default=True, help="Rows shown with --charts.")
@click.option('--artist', 'artist_id', help="Only this artist's tracks.")
@click.pass_obj
def tracks(context, query, charts, limit, artist_id):
    """List published tracks."""
    sync = _synchronizer(context)
    try:
        lib = TrackList(context, sync)
        lib.load(artist_id=artist_id)
    except SoundstageError as e:
        raise click.ClickException(str(e))
    finally:
        sync.shutdown()

    if charts:
        rows, title = lib.top_tracks(limit), "Charts"
    elif query:
        rows, title = lib.search(query), f"Search: {query}"
    else:
        rows, title = lib.get_all_tracks(), "Tracks"

    if not rows:
        console.print("[yellow]No matching tracks found.[/yellow]")
        return
    console.print(_track_table(f"{title} ({len(rows)} tracks)", rows))


@cli.command()
@click.option('--toggle', 'toggle_id', help="Add or remove this track id.")
@click.pass_obj
def favourites(context, toggle_id):
    """List favourites, or toggle one track."""
    _require_user(context)
    sync = _synchronizer(context)
    lib = TrackList(context, sync)
    favs = FavouritesManager(context, sync)
    try:
        lib.load()
        favs.load()
        if toggle_id is not None:
            track_id = _coerce_id(toggle_id)
            added = not favs.is_favourite(track_id)
            outcome = _wait(context, favs.toggle(track_id))
            if outcome and outcome.ok:
                context.notifier.success("Added to favourites" if added else "Removed from favourites")
            return
    except SoundstageError as e:
        raise click.ClickException(str(e))
    finally:
        sync.shutdown()

    rows = [t for t in (lib.get(i) for i in favs.track_ids()) if t is not None]
    if not rows:
        console.print("[yellow]No favourites yet.[/yellow]")
        return
    console.print(_track_table(f"Favourites ({len(rows)} tracks)", rows))


@cli.command()
@click.argument('query', required=False)
@click.option('--repeat', type=click.Choice(["off", "all", "one"]), default="off", show_default=True)
@click.option('--shuffle', is_flag=True)
@click.pass_obj
def play(context, query, repeat, shuffle):
    """Play music. Optionally filter by query."""
    if not MPV_AVAILABLE:
        console.print(Panel.fit(
            "[red bold]Missing System Dependency: libmpv[/red bold]\n\n"
            "The music player requires the [cyan]libmpv[/cyan] library to work.\n\n"
            "Please install it:\n"
            "• Ubuntu/Debian: [green]sudo apt install libmpv2[/green]\n"
            "• Fedora: [green]sudo dnf install mpv-libs[/green]\n"
            "• Arch: [green]sudo pacman -S mpv[/green]",
            border_style="red"
        ))
        return

    AuthSession(context).restore()
    try:
        transport = MpvTransport()
    except Exception as e:
        console.print(f"[red]Error initializing player: {e}[/red]")
        return

    session = ListeningSession(context, transport)
    try:
        session.tracks.load()
    except SoundstageError as e:
        session.close()
        raise click.ClickException(str(e))

    playlist = session.tracks.search(query) if query else session.tracks.get_all_tracks()
    if not playlist:
        console.print("[yellow]No matching tracks found.[/yellow]")
        session.close()
        return

    session.use_queue(playlist)
    session.queue.set_repeat_mode(repeat)
    if shuffle:
        session.queue.shuffle()
    session.play(session.queue.get_all()[0])

    controller = session.controller
    try:
        while True:
            snap = _watch(controller)
            if snap.state == PlayerState.IDLE:
                break
            # Paused: the backend refused to start or a decode error stopped it
            if not click.confirm("Playback is paused. Resume?", default=True):
                break
            if controller.toggle_play() is None:
                console.print("[yellow]This track cannot be played.[/yellow]")
                break
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped.[/yellow]")
    finally:
        session.close()
        transport.terminate()


def _watch(controller):
    """Show the now-playing panel until playback goes idle or pauses."""
    with Live(refresh_per_second=4, console=console) as live:
        while True:
            snap = controller.snapshot()
            if snap.state in (PlayerState.IDLE, PlayerState.PAUSED):
                return snap
            live.update(_now_playing(snap))
            time.sleep(0.25)


def _now_playing(snap) -> Panel:
    track = snap.track
    total = snap.duration or (track.duration if track else 0) or 1
    percent = min(100, (snap.current_time / total) * 100)

    status = Text()
    if track is not None:
        status.append(f"{track.title}\n", style="bold green")
        status.append(f"{track.artist_name}\n", style="cyan")
    status.append(f"{format_time(snap.current_time)} ", style="cyan")
    status.append("━" * int(percent / 2), style="blue")
    status.append(" " * (50 - int(percent / 2)), style="grey50")
    status.append(f" {format_time(snap.duration)}", style="cyan")
    title = "Now Playing" if snap.is_playing else f"Now Playing ({snap.state.value})"
    return Panel(status, title=title)


@cli.command()
@click.argument('track_id')
@click.pass_obj
def like(context, track_id):
    """Like or unlike a track."""
    _require_user(context)
    sync = _synchronizer(context)
    try:
        track = Track.from_dict(context.api.get_track(_coerce_id(track_id)))
        likes = TrackLikes(context, sync, track)
        likes.load()
        liked = likes.is_liked
        outcome = _wait(context, likes.toggle())
    except SoundstageError as e:
        raise click.ClickException(str(e))
    finally:
        sync.shutdown()
    if outcome and outcome.ok:
        verb = "Unliked" if liked else "Liked"
        context.notifier.success(f"{verb} {track.title} ({track.likes_count} likes)")


@cli.command()
@click.argument('audio', type=click.Path(exists=True, dir_okay=False))
@click.option('--title', required=True)
@click.option('--artist', 'artist_name', required=True)
@click.option('--cover', type=click.Path(exists=True, dir_okay=False))
@click.option('--description', default="")
@click.option('--release-type', type=click.Choice(["single", "ep", "album"]), default="single", show_default=True)
@click.option('--release-date', default="")
@click.option('--lyrics', default="")
@click.pass_obj
def upload(context, audio, title, artist_name, cover, description, release_type, release_date, lyrics):
    """Submit a track for moderation."""
    _require_user(context)
    try:
        form = TrackUploadForm(
            title=title,
            artist_name=artist_name,
            audio=UploadFile.from_path(audio),
            cover=UploadFile.from_path(cover) if cover else None,
            description=description,
            release_type=release_type,
            release_date=release_date,
            lyrics=lyrics,
        )
        form.validate()
        with console.status("Uploading..."):
            result = context.api.upload_track(form)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint=e.field)
    except SoundstageError as e:
        raise click.ClickException(str(e))
    context.notifier.success("Track sent for moderation")
    if isinstance(result, dict) and result.get("id") is not None:
        console.print(f"Track id: [cyan]{result['id']}[/cyan]")


@cli.command('become-artist')
@click.option('--artist-name', required=True)
@click.option('--bio', default="")
@click.option('--accept', is_flag=True, help="Accept the artist agreement.")
@click.pass_obj
def become_artist(context, artist_name, bio, accept):
    """Apply for an artist account."""
    _require_user(context)
    form = ArtistRequestForm(artist_name=artist_name, bio=bio, agreement_accepted=accept)
    try:
        AuthSession(context).request_artist(form)
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint=e.field)
    except SoundstageError as e:
        raise click.ClickException(str(e))


@cli.command()
@click.pass_obj
def stats(context):
    """Statistics for your own tracks."""
    user = _require_user(context)
    sync = _synchronizer(context)
    try:
        lib = TrackList(context, sync)
        own = lib.load(artist_id=user.id, approved_only=False)
    except SoundstageError as e:
        raise click.ClickException(str(e))
    finally:
        sync.shutdown()

    summary = summarize_tracks(own)
    table = Table(title="Statistics", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Tracks", str(summary.tracks_count))
    table.add_row("Plays", str(summary.total_plays))
    table.add_row("Likes", str(summary.total_likes))
    table.add_row("Average plays", str(summary.avg_plays_per_track))
    table.add_row("Earnings", summary.earnings_display)
    console.print(table)

    if own:
        detail = Table(title="Tracks")
        detail.add_column("Title", style="bold white")
        detail.add_column("Status")
        detail.add_column("Plays", justify="right")
        detail.add_column("Likes", justify="right")
        for t in own:
            detail.add_row(t.title, status_label(t.status), str(t.plays_count), str(t.likes_count))
        console.print(detail)


@cli.group()
def moderation():
    """Review pending submissions (admins only)."""
    pass


def _moderation_queue(context):
    user = _require_user(context)
    if not user.is_admin:
        raise click.ClickException("Moderation requires an admin account.")
    sync = _synchronizer(context)
    queue = ModerationQueue(context, sync)
    try:
        queue.load()
    except SoundstageError as e:
        sync.shutdown()
        raise click.ClickException(str(e))
    return queue, sync


@moderation.command('list')
@click.option('--status', type=click.Choice(STATUS_FILTERS), default="pending", show_default=True)
@click.option('--search', '-s', default="")
@click.option('--variant', type=click.Choice(["track", "artist", "album"]))
@click.pass_obj
def moderation_list(context, status, search, variant):
    """Show the moderation queue."""
    queue, sync = _moderation_queue(context)
    sync.shutdown()
    items = queue.filter(status=status, search=search, variant=variant)
    if not items:
        console.print("[yellow]Nothing to review.[/yellow]")
        return
    table = Table(title=f"Moderation ({queue.pending_count} pending)")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Type", style="magenta")
    table.add_column("Title", style="bold white")
    table.add_column("Submitted by", style="green")
    table.add_column("Status")
    for item in items:
        table.add_row(str(item.id), item.variant, item.display_title,
                      item.submitted_by or "-", status_label(item.status))
    console.print(table)


@moderation.command('approve')
@click.argument('item_id')
@click.option('--variant', type=click.Choice(["track", "artist", "album"]))
@click.pass_obj
def moderation_approve(context, item_id, variant):
    """Approve a submission."""
    queue, sync = _moderation_queue(context)
    try:
        outcome = _wait(context, queue.approve(_coerce_id(item_id), variant=variant))
    except KeyError:
        raise click.ClickException(f"No pending item {item_id}")
    finally:
        sync.shutdown()
    if outcome and outcome.ok:
        context.notifier.success("Approved")


@moderation.command('reject')
@click.argument('item_id')
@click.option('--reason', prompt=True)
@click.option('--variant', type=click.Choice(["track", "artist", "album"]))
@click.pass_obj
def moderation_reject(context, item_id, reason, variant):
    """Reject a submission with a reason."""
    queue, sync = _moderation_queue(context)
    try:
        outcome = _wait(context, queue.reject(_coerce_id(item_id), reason, variant=variant))
    except ValidationError as e:
        raise click.BadParameter(str(e), param_hint="--reason")
    except KeyError:
        raise click.ClickException(f"No pending item {item_id}")
    finally:
        sync.shutdown()
    if outcome and outcome.ok:
        context.notifier.success("Rejected")


def _coerce_id(value: str):
    """Backends use numeric ids; keep anything else as a string."""
    return int(value) if value.isdigit() else value


if __name__ == '__main__':
    cli()
