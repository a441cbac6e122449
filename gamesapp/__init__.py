"""Kiosk games launcher app for the task manager event bus."""

__version__ = "0.2.0"
