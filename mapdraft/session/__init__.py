"""
Session Module - Manages ephemeral draft sessions.

A session represents one map draft between two parties:
- Created when a party starts a draft
- Holds the candidate pool, bans, picks, turn and sides
- Destroyed when its communication group empties

Sessions are EPHEMERAL:
- No persistence to database
- Lost on process restart
"""

from .manager import EngineConfig, SessionManager, SessionListener
from .store import SessionStore

__all__ = [
    "EngineConfig",
    "SessionManager",
    "SessionListener",
    "SessionStore",
]
