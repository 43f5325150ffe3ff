"""Command-line interface for fbdrange."""
