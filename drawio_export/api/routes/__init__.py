"""
API Routes
==========

Routers for health checks and diagram export.
"""
