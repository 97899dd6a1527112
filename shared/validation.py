"""
Client-side validation for forms.
Everything here runs before any network call and raises ValidationError.
"""

import mimetypes
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

from shared.constants import (
    AUDIO_MIME_TYPES,
    IMAGE_MIME_TYPES,
    MAX_AUDIO_SIZE,
    MAX_BIO_LENGTH,
    MAX_IMAGE_SIZE,
    RELEASE_TYPES,
)
from shared.errors import ValidationError
from shared.formatting import format_size


@dataclass
class UploadFile:
    """A local file picked for upload."""
    path: Path
    mime_type: str
    size: int

    @property
    def filename(self) -> str:
        return Path(self.path).name

    @classmethod
    def from_path(cls, path) -> 'UploadFile':
        path = Path(path).expanduser()
        if not path.is_file():
            raise ValidationError(f"File not found: {path}")
        mime_type, _ = mimetypes.guess_type(str(path))
        return cls(path=path, mime_type=mime_type or "application/octet-stream", size=os.path.getsize(path))


def validate_file(upload: UploadFile, max_size: int, allowed_types: List[str], kind: str, field: str) -> None:
    if upload.mime_type not in allowed_types:
        raise ValidationError(f"Please choose a {kind} file ({', '.join(allowed_types)})", field=field)
    if upload.size > max_size:
        raise ValidationError(f"File size must not exceed {format_size(max_size)}", field=field)


def validate_reject_reason(reason: Optional[str]) -> str:
    """Rejections need a non-empty reason. Returns the stripped reason."""
    cleaned = (reason or "").strip()
    if not cleaned:
        raise ValidationError("A rejection reason is required", field="reason")
    return cleaned


@dataclass
class TrackUploadForm:
    title: str
    artist_name: str
    audio: Optional[UploadFile] = None
    cover: Optional[UploadFile] = None
    description: str = ""
    release_type: str = "single"
    lyrics: str = ""
    author_lyrics: str = ""
    author_beat: str = ""
    author_composer: str = ""
    release_date: str = ""
    presave_url: str = ""
    genre_id: Optional[str] = None

    def validate(self) -> None:
        if self.audio is None:
            raise ValidationError("Please attach an audio file", field="audio")
        if not self.title.strip() or not self.artist_name.strip():
            raise ValidationError("Title and artist name are required", field="title")
        if self.release_type not in RELEASE_TYPES:
            raise ValidationError(f"Unknown release type: {self.release_type}", field="release_type")
        validate_file(self.audio, MAX_AUDIO_SIZE, AUDIO_MIME_TYPES, "audio", "audio")
        if self.cover is not None:
            validate_file(self.cover, MAX_IMAGE_SIZE, IMAGE_MIME_TYPES, "image", "cover")

    def form_fields(self) -> Dict[str, str]:
        """Multipart text fields; empty optional values are left out."""
        fields = {
            "title": self.title.strip(),
            "artist_name": self.artist_name.strip(),
            "description": self.description,
            "release_type": self.release_type,
            "lyrics": self.lyrics,
            "author_lyrics": self.author_lyrics,
            "author_beat": self.author_beat,
            "author_composer": self.author_composer,
            "release_date": self.release_date,
            "presave_url": self.presave_url,
            "genre_id": self.genre_id or "",
        }
        return {k: v for k, v in fields.items() if v}


@dataclass
class ArtistRequestForm:
    artist_name: str
    bio: str = ""
    agreement_accepted: bool = False

    def validate(self) -> None:
        if not self.artist_name.strip():
            raise ValidationError("Artist name is required", field="artist_name")
        if len(self.bio) > MAX_BIO_LENGTH:
            raise ValidationError(f"Bio must be at most {MAX_BIO_LENGTH} characters", field="bio")
        if not self.agreement_accepted:
            raise ValidationError("You must accept the agreement terms", field="agreement_accepted")
