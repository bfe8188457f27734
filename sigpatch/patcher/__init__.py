"""Patcher — byte-exact substitution and hook-variant selection."""
