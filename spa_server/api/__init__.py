"""HTTP layer: routes, response types and wire models."""
