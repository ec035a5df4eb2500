"""
Test Suite
==========

Test suite matching the drawio_export/ package structure.

Test Categories:
- unit: Unit tests for individual components
- integration: HTTP API tests with a mocked exporter
"""
