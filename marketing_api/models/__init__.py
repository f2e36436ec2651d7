from marketing_api.models.waitlist import WaitlistEntry, WaitlistStatus
from marketing_api.models.contact import ContactEntry

__all__ = ["WaitlistEntry", "WaitlistStatus", "ContactEntry"]
