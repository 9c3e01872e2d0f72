"""PayMind: invoice prioritization and AI-assisted payment reminder workflows."""

__version__ = "1.0.0"
