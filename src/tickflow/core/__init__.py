"""Core configuration."""

from tickflow.core.config import EngineSettings

__all__ = ["EngineSettings"]
