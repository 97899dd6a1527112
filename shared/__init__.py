"""Shared client pieces: models, settings, REST client, validation and formatting."""
