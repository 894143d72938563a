"""Command-line interface and user configuration."""
