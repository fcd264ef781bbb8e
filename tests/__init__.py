"""Test package for the document chat assistant.

Structure:
    - unit/: Individual function and class tests
    - integration/: HTTP-level tests against the real FastAPI app

The hosted model is never called: tests swap in a fake agent service or
patch the agno model classes. Uses pytest with pytest-check for soft
assertions.
"""
