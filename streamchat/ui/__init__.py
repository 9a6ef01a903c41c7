"""NiceGUI interface - thin visualization layer for chat interactions.

Responsibilities:
    - Chat message display with streaming support
    - Starting new conversations and reopening stored ones

Contains no business logic. Delegates all state to ChatSession and all
I/O to the chat API.
"""
