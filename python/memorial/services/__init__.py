"""Business logic services.

Services are plain functions that take an explicit Session as their first
argument. Route handlers call exactly one service function each.
"""

from memorial.services.bootstrap import ensure_user
from memorial.services.interactions import handle_toggle, read_reactions, read_reactors
from memorial.services.memorials import get_memorial_for_viewer

__all__ = [
    "ensure_user",
    "handle_toggle",
    "read_reactions",
    "read_reactors",
    "get_memorial_for_viewer",
]
