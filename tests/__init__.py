"""
Tests package - test suite for the Chia operator.

Contains:
- unit/: Unit tests for individual components
- fixtures/: Sample Chia custom resources
"""
