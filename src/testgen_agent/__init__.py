"""Resilient multi-provider test generation layer."""
