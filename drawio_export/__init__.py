"""
Draw.io Export
==============

Converts draw.io / diagrams.net XML diagrams into PNG images or PDF documents
by driving the diagrams.net export page in headless Chromium.

This package provides:
- An offline cache for the diagram engine's remote assets
- A parser for output format strings (png, pdf, cat-pdf)
- Playwright render sessions and PDF page merging
- FastAPI REST endpoints and a command line interface
"""

__version__ = "1.0.0"
