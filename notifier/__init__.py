"""Push notification fan-out dispatcher."""

__version__ = "0.1.0"
