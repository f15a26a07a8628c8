"""Snapshot tables and result files."""
