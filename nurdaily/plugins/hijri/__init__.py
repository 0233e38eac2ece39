"""Hijri date resolution and cache."""
