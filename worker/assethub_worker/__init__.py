"""AssetHub background worker."""
