"""Narrated read-aloud for generated recipes."""

from .core.narrator import NarrationConfig, NarrationController, SessionState

__all__ = ["NarrationConfig", "NarrationController", "SessionState"]
