from marketing_api.schemas.common import ErrorResponse
from marketing_api.schemas.waitlist import (
    WaitlistJoinRequest, WaitlistJoinResponse, WaitlistPositionRequest,
    WaitlistPositionResponse, WaitlistStatsResponse, WaitlistAnalyticsResponse,
)
from marketing_api.schemas.contact import ContactRequest, ContactResponse

__all__ = [
    "ErrorResponse",
    "WaitlistJoinRequest", "WaitlistJoinResponse", "WaitlistPositionRequest",
    "WaitlistPositionResponse", "WaitlistStatsResponse", "WaitlistAnalyticsResponse",
    "ContactRequest", "ContactResponse",
]
