"""Finder — locate the runtime artifact to patch and describe it."""
