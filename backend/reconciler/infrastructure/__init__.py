"""Infrastructure Layer — database access, status store gateway, logging setup.

Invariants:
    - All SQLAlchemy failures mapped to DatabaseError before leaving this layer
    - The status store is the only component issuing status writes

Design Decisions:
    - Concrete implementations of core/repository_protocols.py live here
"""
