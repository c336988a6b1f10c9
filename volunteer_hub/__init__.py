"""Volunteer Hub: volunteer/opportunity matching and application lifecycle."""
