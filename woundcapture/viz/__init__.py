"""Debug overlays for the guidance preview."""
