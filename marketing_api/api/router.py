"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter, Depends

from marketing_api.api.deps import general_throttle
from marketing_api.api.routes import contact, waitlist

api_router = APIRouter(prefix="/api/v1", dependencies=[Depends(general_throttle)])
api_router.include_router(waitlist.router)
api_router.include_router(contact.router)

# Unversioned aliases: /join, /contact, /waitlist-stats
legacy_router = APIRouter(dependencies=[Depends(general_throttle)])
legacy_router.include_router(waitlist.legacy_router)
legacy_router.include_router(contact.router, include_in_schema=False)
