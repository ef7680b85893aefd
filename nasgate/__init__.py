"""NAS Gate: a shared directory tree served over HTTP behind session auth, RBAC and a first-run setup flow."""

__version__ = "0.1.0"
