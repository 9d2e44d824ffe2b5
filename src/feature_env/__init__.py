"""Deterministic environment plans for per-pull-request feature environments."""

__version__ = "0.1.0"
