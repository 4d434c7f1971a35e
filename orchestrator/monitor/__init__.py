"""Continuous read-only status of every repo in the org."""
