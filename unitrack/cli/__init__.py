"""Command-line interface for UniTrack."""
