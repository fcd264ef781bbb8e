"""Document-grounded chat assistant.

Upload PDF, DOCX or text documents, merge them into one context, and ask a
hosted model questions about them with answers streamed back as markdown.

Combines FastAPI for HTTP streaming, Agno for model access, NiceGUI for the
browser client, and Pydantic for data validation.

Components:
    - api: HTTP endpoints, session protocol and NDJSON relay
    - agent: Model access, session registry and context threading
    - parsing: PDF, DOCX and text extraction
    - ui: Chat page, context aggregation and stream consumption
    - models: Request, response and stream record schemas
"""

__version__ = "0.1.0"
