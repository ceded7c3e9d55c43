"""Redistricting: a district-drawing puzzle engine."""

__version__ = "0.1.0"
