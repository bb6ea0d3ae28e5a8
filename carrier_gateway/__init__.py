"""Multi-carrier insurance quote and policy gateway."""

__version__ = "1.0.0"
