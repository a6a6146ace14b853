"""
hr_portal

Top-level package for the HR portal API service.

Responsibilities:
- Expose package version metadata.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Keep this file free of imports so tooling can read the version cheaply.
