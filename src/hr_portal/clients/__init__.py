"""
hr_portal.clients

Clients for the external services the handlers delegate to.

Responsibilities:
- Authentication backend (user lookup, sign-in, account administration).
- Object storage (presigned URLs, deletes).
- Transactional e-mail.
"""
