"""Viewer state and the operations that change it."""

from .store import AppStore, StoreListener
from . import projections

__all__ = ["AppStore", "StoreListener", "projections"]
