"""Encounter difficulty, treasure and loot engines for a tabletop encounter builder."""

__version__ = "0.1.0"
