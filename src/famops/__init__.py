"""
Famops - Household operations backend.

Core subsystems:
- Routines: per-task completion and streak tracking
- Generation: AI meal plans and packing lists with deterministic fallback
- Reconcile: idempotent meal upserts and grocery/packing list merges
"""

__version__ = "1.0.0"
