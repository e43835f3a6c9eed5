"""Asset lifecycle API."""
