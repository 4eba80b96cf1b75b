"""Examine: robust location and dispersion estimation for weighted data."""

__version__ = "0.1.0"
