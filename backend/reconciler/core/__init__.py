"""Core Layer — pure completion logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (time is always passed in)

Design Decisions:
    - Functional core separated from imperative shell: the sweep orchestrates
      IO around these decisions, it never embeds them
"""
