"""Playback controller, media transport and the optimistic track/favourite/like lists."""
