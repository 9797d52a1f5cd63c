"""Concrete test generation providers."""
