"""Marvin: a chat bot that learns facts on request and answers questions about them."""

__version__ = "0.1.0"
