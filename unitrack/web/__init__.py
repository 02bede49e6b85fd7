"""Web API for UniTrack."""
