"""Small network helpers (TCP probe, DNS resolution, unit conversion).

Keep this package dependency-light to avoid circular imports.
"""
