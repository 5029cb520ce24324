# enrollment_dashboard/models/__init__.py
# Central import surface for SQLModel table registration.
# Keeping these imports ensures init_db() sees all models and creates tables.

from .enrollment import Enrollment

__all__ = [
    "Enrollment",
]
