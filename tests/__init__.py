"""Test package for streamchat.

Unit tests cover isolated logic; integration tests drive the store API
and the chat session end to end.

Structure:
    - unit/: Individual function and class tests
    - integration/: Store API and session workflow tests

Network access is never required: the store API runs in-process through
ASGITransport and the model server is a scripted httpx.MockTransport.
Leverages pytest with pytest-check for soft assertions.
"""
