"""Toolkit for the Schwab API: query options, order payloads and a streaming session."""

__version__ = "0.2.1"