"""HTTP middleware for the labrules API."""
