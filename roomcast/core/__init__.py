"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, infrastructure/, models/ or db/
    - All functions are pure and deterministic (clock and id sources are passed in)

Design Decisions:
    - Functional core separated from imperative shell: commands load, call core, persist, publish
"""
