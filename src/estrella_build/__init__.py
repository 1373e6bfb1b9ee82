"""Build orchestration and typeinfo generation for estrella."""

__version__ = "0.1.0"
