"""Principia - repository-wide architecture compliance auditor."""

__version__ = "0.1.0"
