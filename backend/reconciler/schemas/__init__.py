"""Pydantic Schemas — patch payload validation and API response models.

Invariants:
    - Schemas validate at system boundaries (status writes, API responses)
    - Domain types from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are contracts, models are persistence
"""
