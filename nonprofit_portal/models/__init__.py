"""Models package - imports every model so the mappers resolve each other."""
from nonprofit_portal.models.user import User
from nonprofit_portal.models.event import EventTemplate, EventOccurrence
from nonprofit_portal.models.registration import Registration
from nonprofit_portal.models.survey import Survey
from nonprofit_portal.models.milestone import Milestone, UserMilestone
from nonprofit_portal.models.donation import Donation

__all__ = [
    'User', 'EventTemplate', 'EventOccurrence', 'Registration',
    'Survey', 'Milestone', 'UserMilestone', 'Donation',
]
