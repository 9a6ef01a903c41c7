"""Test package for StreamChat.

Structure:
    - unit/: Individual component tests (models, store, relay, client)
    - integration/: HTTP API and end-to-end streaming tests

The completion provider is replaced with a scripted fake everywhere, so no
API key or network access is needed.
"""
