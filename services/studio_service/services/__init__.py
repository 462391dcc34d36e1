"""Data access for the studio service."""
