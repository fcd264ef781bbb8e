"""Integration tests for components working together.

Coverage:
    - Chat, summarize and upload endpoints with real HTTP requests
    - The chat page's HTTP client against the running app
    - Context threading across a full multi-turn session
"""
