"""Pagecast - broadcast a page to participants and collect their responses."""

__version__ = "1.0.0"
