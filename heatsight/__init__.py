"""Heatsight — viewport-synchronised sighting heatmap service."""
