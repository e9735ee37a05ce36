# Garden Planner - Source Package
"""
Garden Planner: photo-based garden layout planning core.

This package provides:
- Reference-object scale calibration
- Conversions between canvas percentages, pixels and real-world sizes
- A garden store with durable JSON persistence
- A placement and drag interaction session
- Layout export to pandas / GeoPandas
"""

__version__ = "0.1.0"
