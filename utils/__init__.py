"""Shared utilities: logging, datetime handling, validation and errors."""
