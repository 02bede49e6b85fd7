"""UniTrack - attendance tracking and break planning."""
