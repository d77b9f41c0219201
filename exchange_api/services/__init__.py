"""Services package - infrastructure-facing helpers (user management)."""
