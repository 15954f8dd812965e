"""Stochastic (Gillespie) folding kinetics of single RNA molecules."""

__version__ = "0.1.0"
