"""Per-frame classifiers: lighting, distance, positioning and readiness."""
