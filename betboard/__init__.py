"""Betboard: post personal challenges and bet on whether they get done."""

__version__ = "0.1.0"
