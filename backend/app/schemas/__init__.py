from app.schemas.common import Envelope, ErrorEnvelope, Pagination
from app.schemas.profile import ProfileUpdate, ProfileResponse, ProfileStatus
from app.schemas.gig import GigCreate, GigUpdate, GigResponse, GigListData
from app.schemas.application import (
    ApplicationCreate, ApplicationStatusUpdate, ApplicationSubmitted,
    ApplicationStatusChanged, GigApplicationsData, MyApplicationsData, ApplicationDetail,
)
from app.schemas.event import EventCreate, EventUpdate, EventResponse, EventListData
from app.schemas.rsvp import RSVPCreate, RSVPResponse, RSVPListData, MyRSVPsData
from app.schemas.notification import NotificationListData, NotificationRead, MarkAllReadResult

__all__ = [
    "Envelope", "ErrorEnvelope", "Pagination",
    "ProfileUpdate", "ProfileResponse", "ProfileStatus",
    "GigCreate", "GigUpdate", "GigResponse", "GigListData",
    "ApplicationCreate", "ApplicationStatusUpdate", "ApplicationSubmitted",
    "ApplicationStatusChanged", "GigApplicationsData", "MyApplicationsData", "ApplicationDetail",
    "EventCreate", "EventUpdate", "EventResponse", "EventListData",
    "RSVPCreate", "RSVPResponse", "RSVPListData", "MyRSVPsData",
    "NotificationListData", "NotificationRead", "MarkAllReadResult",
]
