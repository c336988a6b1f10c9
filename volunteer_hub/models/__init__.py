"""Database models."""

# Import all models in dependency order to ensure proper relationship initialization

# Base models (no foreign keys)
from volunteer_hub.models.user import User

# Profiles
from volunteer_hub.models.volunteer import Volunteer
from volunteer_hub.models.charity import Charity

# Models with foreign keys to profiles
from volunteer_hub.models.opportunity import Opportunity
from volunteer_hub.models.application import Application
from volunteer_hub.models.attendance import Attendance
from volunteer_hub.models.notification import Notification

__all__ = [
    "User",
    "Volunteer",
    "Charity",
    "Opportunity",
    "Application",
    "Attendance",
    "Notification",
]
