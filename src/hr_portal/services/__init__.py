"""
hr_portal.services

Service layer.

Responsibilities:
- Account administration and onboarding flows.
- Zip archive streaming.
- Scheduled HR reminders.
- Object key naming.
"""
