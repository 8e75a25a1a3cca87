"""Bayesian team quality estimation and game forecasting."""

__version__ = "0.1.0"
