"""tutorsync: resilient async operations for the tutoring platform."""

__version__ = "0.3.0"
