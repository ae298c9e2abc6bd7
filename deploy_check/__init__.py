"""Post-deploy verification runner for the SPA static host.

Polls /__status, samples a handful of representative paths and exits non-zero
when the deployment or its response headers look wrong.
"""
