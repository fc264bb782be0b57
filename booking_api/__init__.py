"""Availability and booking-conflict service."""

__version__ = "0.1.0"
