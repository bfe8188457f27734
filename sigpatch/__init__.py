"""sigpatch — versioned byte-substitution patching with backup and diagnostics."""

__version__ = "0.4.0"
