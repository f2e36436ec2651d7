"""
Contact form endpoint.
"""

from fastapi import APIRouter, Depends, Request, status

from marketing_api.api.deps import client_ip, get_contact_admission, signup_throttle, user_agent
from marketing_api.schemas.common import ErrorResponse
from marketing_api.schemas.contact import ContactRequest, ContactResponse
from marketing_api.services.contact_service import ContactAdmission

router = APIRouter(tags=["Contact"])


@router.post("/contact", response_model=ContactResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(signup_throttle)],
             responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}})
async def submit_contact(
    payload: ContactRequest,
    request: Request,
    admission: ContactAdmission = Depends(get_contact_admission),
):
    """Accept a contact-form message. 400 on invalid fields, 429 past the 24h IP limit."""
    result = await admission.admit(
        name=payload.name,
        email=payload.email,
        subject=payload.subject,
        message=payload.message,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )
    return ContactResponse(
        message=(
            f"Thank you {result.entry.name}! We've received your message "
            "and will reply within 24 hours."
        ),
    )
