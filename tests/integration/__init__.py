"""Integration tests for components working together as a system.

Coverage:
    - Store API endpoints against the memory and SQLite backends
    - HTTP clients talking to the in-process store and a fake model server
    - Full chat workflow from submit to persisted reply

Slower than unit tests but provides higher confidence.
"""
