"""TypeScope: personality assessment scoring with runtime-tunable configuration."""

__version__ = "1.0.0"
