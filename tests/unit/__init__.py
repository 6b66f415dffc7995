"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation and serialization
    - client/: Line framing, chunk decoding, stream reduction, config
    - session/: Text helpers and attachment decoding

Leverages pytest-check for multiple assertions per test.
"""
