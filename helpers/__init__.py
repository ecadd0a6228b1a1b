"""Shared helpers for frequency alignment."""
