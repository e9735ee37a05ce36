# Garden Planner Core Module
"""
Core business logic module for Garden Planner.

Contains:
- Garden record entities and durable dictionary shapes
- Read-only plant catalog
- Durable storage adapters
- Pure garden-state reducer
- Garden store
"""
