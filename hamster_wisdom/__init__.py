"""
Hamster Wisdom - A terminal client for Gerald's wisdom service.

This package provides a session controller that coordinates asynchronous calls
to the wisdom Quote Service, plus the text views and CLI that render its state.
"""

__version__ = "0.1.0"
