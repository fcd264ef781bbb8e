"""NiceGUI interface - thin client for the chat API.

Responsibilities:
    - Document upload and merging into one context
    - Chat transcript with live streaming updates
    - Session start, restart and teardown

Talks to the API over HTTP only and holds no server state.
"""
