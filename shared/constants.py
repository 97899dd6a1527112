"""
Shared constants used across the client.
"""

# Backend
DEFAULT_API_URL = "http://localhost:3000/api"
TOKEN_KEY = "token"
TOKEN_STORE_FILENAME = "session.json"

# Network Settings
DEFAULT_NETWORK_TIMEOUT = 30  # seconds
DEFAULT_SYNC_WORKERS = 4

# Configuration paths
DEFAULT_CONFIG_DIR = "~/.config/soundstage"

# Playback
DEFAULT_VOLUME = 0.7
TIME_UPDATE_INTERVAL = 0.25  # seconds between transport time events

# Upload limits
MAX_AUDIO_SIZE = 10 * 1024 * 1024  # 10MB
MAX_IMAGE_SIZE = 2 * 1024 * 1024   # 2MB
AUDIO_MIME_TYPES = ["audio/mpeg", "audio/wav", "audio/x-wav", "audio/mp3"]
IMAGE_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]
RELEASE_TYPES = ["single", "ep", "album"]

# Artist onboarding
MAX_BIO_LENGTH = 500

# Statistics display
PRICE_PER_PLAY = 0.5
PRICE_PER_LIKE = 2

# Placeholder id prefix for relations created before the server answers
LOCAL_ID_PREFIX = "local-"
