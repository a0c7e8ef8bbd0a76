"""Billiards league rating and ranking engine."""

__version__ = "1.0.0"
