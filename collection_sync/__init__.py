"""collection-sync — sorted, observable client-side cache for remote resource collections.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports from submodules, no star exports
"""
