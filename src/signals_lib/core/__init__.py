"""Caching, configuration, errors, logging and shared data types."""
