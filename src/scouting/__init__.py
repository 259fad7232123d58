# src/scouting/__init__.py
"""Scouting backend: match/pit form submissions, claim buttons and exports."""

__version__ = "1.0.0"
