"""Utility package for Garden Planner.

Submodules:
- ``scale``: calibration and coordinate transforms
- ``placement``: placement and drag interaction session
- ``garden_io``: layout export helpers
"""
