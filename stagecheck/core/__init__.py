"""Verification components, download cache and error hierarchy."""
