"""
JSON-file backed user store.

Layers (top-down):
- routers: FastAPI endpoints binding HTTP to the use cases
- services: use cases (existence checks, error wrapping)
- repositories: persistence adapters (today a single JSON file)
- domain: the User entity and the error taxonomy
- core: configuration, logging and locking primitives
"""
