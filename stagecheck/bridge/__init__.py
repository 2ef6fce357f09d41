"""Boundaries to third-party libraries: httpx and PGPy."""
