"""Signatures — declarative, versioned rule bundles.

This package provides:
- Schema: the structural definition of a signature record
- Store: loading records from a directory, skipping malformed ones
- Resolver: picking the best-matching bundle for a runtime version
"""
