"""
hr_portal.api

API package for the HR portal service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring, request bodies and error rendering.
"""
