"""Supervise a long-running process and alert when it fails or goes quiet."""

__version__ = "0.1.0"
