from app.models.user_profile import UserProfile
from app.models.gig import Gig, GigLocation, GigDateWindow
from app.models.application import Application
from app.models.event import WhatsOnEvent, ScheduleSlot, EventTag
from app.models.rsvp import RSVP, RSVPDate
from app.models.notification import Notification
from app.models.referral import Referral

__all__ = [
    "UserProfile",
    "Gig", "GigLocation", "GigDateWindow",
    "Application",
    "WhatsOnEvent", "ScheduleSlot", "EventTag",
    "RSVP", "RSVPDate",
    "Notification",
    "Referral",
]
