"""Unit tests for individual components in isolation.

Coverage:
    - agent/: Configuration, session registry and context threading
    - api/: NDJSON relay
    - parsing/: PDF, DOCX and text extraction
    - ui/: Context aggregation and stream reassembly
"""
