from beckah.services.email.sender import send_email
from beckah.services.email.notifications import emails_enabled

__all__ = ["send_email", "emails_enabled"]
