"""FastAPI endpoints for StreamChat.

HTTP and streaming routes with RESTful API design and async request handling.
Uses Server-Sent Events for real-time chat streaming.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Start a conversation (SSE)
    - POST /chat/{id}: Continue a conversation (SSE)
    - GET /chat/{id}: Chat history
    - GET /chats: All chats, newest first
    - DELETE /chat/{id}: Delete a chat and its messages
"""

from streamchat.api.app import app, create_app
from streamchat.api.relay import RelayMode, StreamingRelay

__all__ = ["RelayMode", "StreamingRelay", "app", "create_app"]
