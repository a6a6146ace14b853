"""
hr_portal.observability

JSON logging setup and the request-id middleware. Every module logs through
`observability.logging.get_logger`.
"""
