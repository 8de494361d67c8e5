"""plannr: a small personal calendar store."""

__version__ = "0.1.0"
