"""Configuration and logging utilities."""
