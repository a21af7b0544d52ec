"""Booking lifecycle and scheduling-conflict engine for a coach/client marketplace."""

__version__ = "0.1.0"
