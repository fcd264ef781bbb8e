"""FastAPI endpoints for the document chat assistant.

HTTP and streaming routes with async request handling. Chat replies stream
as newline-delimited JSON records.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Start a session or stream a reply
    - DELETE /chat/sessions/{id}: Discard a session
    - POST /summarize: Condense the document context
    - POST /upload/document: Extract text from a PDF, TXT or DOCX file
"""

from docchat.api.app import app, create_app

__all__ = ["app", "create_app"]
