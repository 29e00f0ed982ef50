"""
Slowpost Store Test Suite.

This package contains:
- unit/: Unit tests per module (no network)
- integration/: Contract tests run against every adapter, end-to-end scenarios
- fakes.py: Recording libSQL client for the Turso adapter
"""
