"""Single-request TCP client with an inactivity guard and connection retries."""

__version__ = "0.3.0"
