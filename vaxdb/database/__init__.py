"""Database access layer — connection handle and ownership helper."""

from .connection import Handle, connect, session

__all__ = ["Handle", "connect", "session"]
