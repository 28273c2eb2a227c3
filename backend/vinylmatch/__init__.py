"""Vintage turntable component catalog and compatibility matcher."""

__version__ = "0.1.0"
