"""
Core utilities shared across the user store.

This package hosts configuration helpers (env vars, paths, feature flags),
logging setup and the locking primitives used by the repositories.
"""
