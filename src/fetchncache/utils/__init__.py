"""Shared helpers for fetchncache."""

from fetchncache.utils.io import ensure_dir, write_bytes

__all__ = ["ensure_dir", "write_bytes"]
