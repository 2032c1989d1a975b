"""
CDC Archive Test Suite.

This package contains:
- unit/: Unit tests for the pure transforms, config and stores
- integration/: Change events run end to end against the in-memory store
"""
