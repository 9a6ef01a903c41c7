"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation, title derivation, frame encoding
    - store/: In-memory and SQL chat stores
    - api/: Streaming relay state machine
    - client/: Frame decoding, stream consumer, session reducer
    - agent/: Agent configuration and event filtering
"""
