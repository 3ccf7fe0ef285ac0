# src/stochvol/__init__.py
"""Heston stochastic-volatility process model and supporting market objects."""

__version__ = "0.1.0"
