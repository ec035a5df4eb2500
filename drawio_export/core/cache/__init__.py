"""
Cache Module
============

Offline mirror of the diagram engine's remote assets.
"""
