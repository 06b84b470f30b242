"""Cost aggregation, trend and share calculations."""
