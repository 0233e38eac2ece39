"""Dhikr counter and session history."""
