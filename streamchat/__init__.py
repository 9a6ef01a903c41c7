"""StreamChat - multi-turn chat with incremental model output.

Combines FastAPI for HTTP streaming, Agno for model orchestration,
SQLAlchemy for conversation storage, NiceGUI for visualization,
and Pydantic for data validation.

Components:
    - api: HTTP endpoints and the streaming relay
    - agent: Completion provider backed by an LLM
    - store: Durable chat and message storage
    - client: SSE stream consumer and session state
    - ui: Web interface for chat interactions
    - models: Request/response schemas and stream frames
"""

__version__ = "0.1.0"
