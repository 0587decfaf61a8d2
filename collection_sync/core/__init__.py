"""Core Layer — sorting, snapshot cache, broadcast, errors. No IO.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - Everything here is synchronous; only the collaborator Protocols declare async methods
"""
