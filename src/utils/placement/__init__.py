"""Placement interaction submodule."""

from src.utils.placement.session import PlacementPreview, PlacementSession, SessionState

__all__ = ["PlacementPreview", "PlacementSession", "SessionState"]
