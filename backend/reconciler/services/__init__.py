"""Services Layer — reconciliation sweep, scheduler, and lifecycle wiring.

Invariants:
    - Services orchestrate IO around core decisions; they never re-implement them
    - The status store is reached only through the StatusStore protocol

Design Decisions:
    - One file per concern: sweep (one pass), scheduler (cadence), service (lifecycle)
"""
