"""Authenticated HTTP client and session management for the Femo Space API."""

__version__ = "0.1.0"
