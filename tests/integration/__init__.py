"""Integration tests for the HTTP API.

Drives the real FastAPI app through httpx's ASGI transport with the
in-memory store and a scripted completion provider.
"""
