"""
Core Business Logic
==================

Render-and-export pipeline for draw.io diagrams.

Modules:
- cache: Offline mirror of the engine's remote assets
- format: Output format grammar
- rendering: Browser render sessions, page merging and the render entry point
- exceptions: Typed pipeline failures
"""
