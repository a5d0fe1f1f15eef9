"""Skeleton and status overlay."""
