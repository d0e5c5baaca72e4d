"""Synthetic CPU/memory/latency load behind an HTTP endpoint."""

__version__ = "0.1.0"
