"""
Enrollment network dashboard backend.

- enrollment_dashboard.main:app is the ASGI entrypoint.
- enrollment_dashboard.services holds the referral-network builder.
"""
