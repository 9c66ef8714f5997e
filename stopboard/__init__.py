"""Serve transit stop metadata and accept live arrival-time updates."""

from .app import create_app
from .store import TransitStore

__all__ = ["create_app", "TransitStore"]
