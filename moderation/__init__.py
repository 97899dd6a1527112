"""
Moderation review workflow for admins: the pending queue of track,
artist-application and album submissions and the approve/reject decisions.
"""

from moderation.review import ModerationQueue

__all__ = ["ModerationQueue"]
