"""Request handling use-cases: dispatch decisions and diagnostics."""
