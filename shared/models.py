"""
Data models for tracks, relations, users, playback and moderation.

This module defines the core data structures used throughout the client.
The backend owns all durable state; these are cached copies of what it
returns plus the ephemeral playback session.
"""

import dataclasses
import uuid
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Union

from shared.constants import DEFAULT_VOLUME, LOCAL_ID_PREFIX


def _known_fields(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys that are not fields of the dataclass."""
    field_names = {f.name for f in dataclasses.fields(cls)}
    return {k: v for k, v in data.items() if k in field_names}


def local_id() -> str:
    """Placeholder id for a relation the server has not confirmed yet."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4()}"


class TrackStatus(Enum):
    """Moderation status of a submitted track."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PlayerState(Enum):
    """States of the playback controller."""
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ADVANCING = "advancing"


@dataclass
class Track:
    """
    Represents a single track as served by the backend.

    Attributes:
        id: Backend identifier
        title: Song title
        artist_name: Display name of the artist
        cover_url: Cover image URL (optional)
        audio_url: Streamable audio URL
        duration: Duration in seconds
        plays_count: Number of plays (never negative)
        likes_count: Number of likes (never negative)
        status: Moderation status
        rejection_reason: Moderator reason when rejected
    """
    id: Any
    title: str
    artist_name: str = ""
    cover_url: Optional[str] = None
    audio_url: Optional[str] = None
    duration: float = 0
    plays_count: int = 0
    likes_count: int = 0
    status: TrackStatus = TrackStatus.APPROVED
    rejection_reason: Optional[str] = None
    artist_id: Optional[Any] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    created_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['status'] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Track':
        """Create Track from dictionary, filtering unknown keys."""
        filtered = _known_fields(cls, data)
        filtered['status'] = TrackStatus(filtered.get('status') or TrackStatus.APPROVED.value)
        # Backends send null for counters on fresh tracks
        filtered['plays_count'] = max(0, int(filtered.get('plays_count') or 0))
        filtered['likes_count'] = max(0, int(filtered.get('likes_count') or 0))
        filtered['duration'] = filtered.get('duration') or 0
        return cls(**filtered)


@dataclass
class Favorite:
    """A (user, track) favorite relation. Existence means favorited."""
    track_id: Any
    user_id: Optional[Any] = None
    id: Any = field(default_factory=local_id)

    @property
    def is_local(self) -> bool:
        return isinstance(self.id, str) and self.id.startswith(LOCAL_ID_PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Favorite':
        return cls(**_known_fields(cls, data))


@dataclass
class Like:
    """A (user, track) like relation, independent of favorites."""
    track_id: Any
    user_id: Optional[Any] = None
    created_at: Optional[str] = None
    id: Any = field(default_factory=local_id)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Like':
        filtered = _known_fields(cls, data)
        if 'created_at' not in filtered and data.get('created_date'):
            filtered['created_at'] = data['created_date']
        return cls(**filtered)


@dataclass
class User:
    """Authenticated account as returned by the profile endpoint."""
    id: Any
    email: str
    full_name: Optional[str] = None
    role: str = "user"  # user, artist, admin
    artist_name: Optional[str] = None
    bio: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def is_artist(self) -> bool:
        return self.role == "artist"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(**_known_fields(cls, data))


@dataclass
class PlaybackSession:
    """
    Client-only playback state. Reset whenever the current track changes.

    Invariants: current_time <= duration once duration is known, and
    is_playing is False whenever current_track is None.
    """
    current_track: Optional[Track] = None
    is_playing: bool = False
    current_time: float = 0.0
    duration: float = 0.0
    volume: float = DEFAULT_VOLUME
    is_muted: bool = False

    @property
    def duration_known(self) -> bool:
        return self.duration > 0

    @property
    def effective_volume(self) -> float:
        return 0.0 if self.is_muted else self.volume

    def reset(self, track: Optional[Track] = None) -> None:
        """Start over for a new track; volume and mute survive."""
        self.current_track = track
        self.is_playing = False
        self.current_time = 0.0
        self.duration = 0.0


@dataclass(frozen=True)
class PlaybackSnapshot:
    """Immutable view of the controller handed to listeners."""
    state: PlayerState
    track: Optional[Track]
    is_playing: bool
    current_time: float
    duration: float
    volume: float
    is_muted: bool


# Moderation queue items: a tagged union on ``variant``

@dataclass
class TrackSubmission:
    id: Any
    title: str = ""
    artist_name: str = ""
    audio_url: Optional[str] = None
    cover_url: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    duration: float = 0
    status: TrackStatus = TrackStatus.PENDING
    submitted_by: Optional[str] = None
    submitted_at: Optional[str] = None
    comment: Optional[str] = None

    variant: ClassVar[str] = "track"
    id_field: ClassVar[str] = "track_id"

    @property
    def display_title(self) -> str:
        return f"{self.artist_name} - {self.title}" if self.artist_name else self.title


@dataclass
class ArtistApplication:
    id: Any
    artist_name: str = ""
    full_name: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    bio: Optional[str] = None
    documents: List[str] = field(default_factory=list)
    socials: Dict[str, str] = field(default_factory=dict)
    status: TrackStatus = TrackStatus.PENDING
    submitted_by: Optional[str] = None
    submitted_at: Optional[str] = None
    comment: Optional[str] = None

    variant: ClassVar[str] = "artist"
    id_field: ClassVar[str] = "application_id"

    @property
    def display_title(self) -> str:
        if self.full_name:
            return f"{self.artist_name} ({self.full_name})"
        return self.artist_name


@dataclass
class AlbumSubmission:
    id: Any
    title: str = ""
    artist_name: str = ""
    cover_url: Optional[str] = None
    release_type: str = "album"
    track_ids: List[Any] = field(default_factory=list)
    status: TrackStatus = TrackStatus.PENDING
    submitted_by: Optional[str] = None
    submitted_at: Optional[str] = None
    comment: Optional[str] = None

    variant: ClassVar[str] = "album"
    id_field: ClassVar[str] = "album_id"

    @property
    def display_title(self) -> str:
        return f"{self.artist_name} - {self.title}" if self.artist_name else self.title


ModerationItem = Union[TrackSubmission, ArtistApplication, AlbumSubmission]

MODERATION_VARIANTS = {
    TrackSubmission.variant: TrackSubmission,
    ArtistApplication.variant: ArtistApplication,
    AlbumSubmission.variant: AlbumSubmission,
}


def moderation_item_from_dict(data: Dict[str, Any]) -> ModerationItem:
    """Build the right moderation item for ``data['variant']`` (default: track)."""
    variant = data.get('variant') or TrackSubmission.variant
    cls = MODERATION_VARIANTS.get(variant)
    if cls is None:
        raise ValueError(f"Unknown moderation item variant: {variant!r}")

    filtered = _known_fields(cls, data)
    filtered['status'] = TrackStatus(data.get('status') or TrackStatus.PENDING.value)
    # Older payloads use the front-end field names
    if 'submitted_by' not in filtered and data.get('created_by'):
        filtered['submitted_by'] = data['created_by']
    if 'submitted_at' not in filtered and data.get('created_date'):
        filtered['submitted_at'] = data['created_date']
    if 'comment' not in filtered and data.get('reason'):
        filtered['comment'] = data['reason']
    return cls(**filtered)
