"""
hr_portal.db.repositories

Per-table query helpers used by handlers and services.
"""
