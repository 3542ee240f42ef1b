"""mobilyze - mobile package extraction and static analysis pipeline."""

__version__ = "0.1.0"
