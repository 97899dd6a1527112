"""Display formatting helpers: times, sizes, labels and artist statistics."""

import math
from dataclasses import dataclass
from typing import Iterable

from shared.constants import PRICE_PER_LIKE, PRICE_PER_PLAY

STATUS_LABELS = {
    "draft": "Draft",
    "pending": "Pending review",
    "approved": "Published",
    "rejected": "Rejected",
}


def format_time(seconds) -> str:
    """m:ss, with 0:00 for unknown values."""
    try:
        value = float(seconds)
    except (TypeError, ValueError):
        return "0:00"
    if math.isnan(value) or math.isinf(value) or value < 0:
        return "0:00"
    minutes = int(value // 60)
    secs = int(value % 60)
    return f"{minutes}:{secs:02d}"


def format_size(size_bytes: int) -> str:
    if size_bytes < 1024:
        return f"{size_bytes} B"
    if size_bytes < 1024 ** 2:
        return f"{size_bytes / 1024:.1f} KB"
    return f"{size_bytes / 1024 ** 2:.1f} MB"


def status_label(status) -> str:
    value = getattr(status, "value", status)
    return STATUS_LABELS.get(value, str(value))


@dataclass(frozen=True)
class ArtistStats:
    tracks_count: int
    total_plays: int
    total_likes: int
    earnings: float
    avg_plays_per_track: int

    @property
    def earnings_display(self) -> str:
        return f"{self.earnings:.2f}"


def summarize_tracks(tracks: Iterable) -> ArtistStats:
    """Totals shown on the artist statistics screen."""
    tracks = list(tracks)
    total_plays = sum(t.plays_count or 0 for t in tracks)
    total_likes = sum(t.likes_count or 0 for t in tracks)
    earnings = total_plays * PRICE_PER_PLAY + total_likes * PRICE_PER_LIKE
    avg = round(total_plays / len(tracks)) if tracks else 0
    return ArtistStats(
        tracks_count=len(tracks),
        total_plays=total_plays,
        total_likes=total_likes,
        earnings=earnings,
        avg_plays_per_track=avg,
    )
