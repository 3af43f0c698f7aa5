"""Test suite for gene-concentration.

Test organization:
- fixtures/: Mock data generators and test utilities
- unit/: Unit tests for individual modules

Run tests with:
    pytest tests/
    pytest tests/unit/ -v --tb=short
"""
