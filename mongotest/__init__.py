"""Integration harness for a containerized MongoDB image."""
