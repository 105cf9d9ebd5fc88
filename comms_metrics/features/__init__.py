"""Vertical feature slices: metrics, query, analytics, ingest."""
