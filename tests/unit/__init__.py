"""
Unit tests for the mongotest harness; no Docker daemon needed.
"""
