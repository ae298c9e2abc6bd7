"""Pure domain utilities: request paths, asset metadata, security headers.

These modules are free of FastAPI/HTTP plumbing so they can be unit-tested
and reused by the deployment runner.
"""
__all__ = ["assets", "headers", "paths"]
