"""Fomí client: Supabase access and the viewer's in-memory state."""

__version__ = "0.1.0"
