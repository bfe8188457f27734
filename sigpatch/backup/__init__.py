"""Backup — single-slot pre-patch snapshot with hash verification."""
