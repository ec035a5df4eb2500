"""
Rendering Module
===============

Browser automation for diagram export.

Components:
- session: Playwright session driving the diagram engine
- aggregator: PDF page merging
- exporter: The render entry point
"""
