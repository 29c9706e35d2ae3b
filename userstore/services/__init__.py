"""
High-level use cases for the user store.

Each service module orchestrates repositories to implement business rules
(existence checks before mutation, error wrapping).

Routers (FastAPI endpoints) call these services instead of touching the
repository directly.
"""
