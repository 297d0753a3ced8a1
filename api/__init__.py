"""ResoNote HTTP API."""
