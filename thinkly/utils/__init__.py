"""Utility functions for thinkly."""

from thinkly.utils.helpers import ensure_dir, get_data_path, new_memory_id, now_ms

__all__ = ["ensure_dir", "get_data_path", "new_memory_id", "now_ms"]
