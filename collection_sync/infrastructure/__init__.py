"""Infrastructure Layer — HTTP transport, URL resolution, and logging setup.

Invariants:
    - All network failures mapped to core/errors.py TransportError subclasses
"""
