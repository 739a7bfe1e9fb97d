"""Shared helpers for math and input validation."""
