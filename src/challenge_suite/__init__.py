"""Challenge Suite API."""
