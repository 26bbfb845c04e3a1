from .user import User
from .organization import Organization, OrgMembership
from .listing import Listing, ListingStatus, ListingType
from .talent import BusyBlock, TalentProfile, VisibilityScope
from .candidate_job import ApplicationStatus, JobApplication, JobDismissal, SavedJob
from .swipe import EmployerTalentSwipe, SwipeDirection, TalentJobSwipe
from .match import Match, MatchStatus
from .booking import BookingSource, BookingStatus, ReleaseOffer, ReleaseOfferStatus, ShiftBooking
from .offer import Offer, OfferStatus
from .circle import Circle, CircleLink, CircleLinkStatus, CircleMembership
from .borrow import BorrowOffer, BorrowOfferStatus, BorrowRequest, BorrowRequestStatus, BorrowScope

__all__ = [
    "User",
    "Organization",
    "OrgMembership",
    "Listing",
    "ListingStatus",
    "ListingType",
    "BusyBlock",
    "TalentProfile",
    "VisibilityScope",
    "ApplicationStatus",
    "JobApplication",
    "JobDismissal",
    "SavedJob",
    "EmployerTalentSwipe",
    "SwipeDirection",
    "TalentJobSwipe",
    "Match",
    "MatchStatus",
    "BookingSource",
    "BookingStatus",
    "ReleaseOffer",
    "ReleaseOfferStatus",
    "ShiftBooking",
    "Offer",
    "OfferStatus",
    "Circle",
    "CircleLink",
    "CircleLinkStatus",
    "CircleMembership",
    "BorrowOffer",
    "BorrowOfferStatus",
    "BorrowRequest",
    "BorrowRequestStatus",
    "BorrowScope",
]
