"""Services Layer — CRUD coordinator and the resource services composed from it.

Invariants:
    - Services depend on core Protocols, never on a concrete transport
"""
