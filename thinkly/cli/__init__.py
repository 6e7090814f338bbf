"""CLI module for thinkly."""
