"""Memoria: first-person life narratives for memorial pages."""

__version__ = "0.1.0"
