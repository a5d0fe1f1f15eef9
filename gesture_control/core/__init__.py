"""Shared domain types and the per-tick pipeline."""
