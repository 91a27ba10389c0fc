"""CLI module for shellgate."""
