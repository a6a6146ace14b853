"""
hr_portal.api.routers

HTTP routers, one module per surface.
"""
