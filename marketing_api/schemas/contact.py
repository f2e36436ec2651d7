"""
Pydantic schemas for contact-form payloads.
"""

from typing import Optional
from pydantic import BaseModel


class ContactRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ContactResponse(BaseModel):
    success: bool = True
    message: str
