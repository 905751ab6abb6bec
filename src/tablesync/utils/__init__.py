"""Checkpoint, correlation and validation utilities for table sync."""
