"""Duplicate account detection and account consolidation."""
