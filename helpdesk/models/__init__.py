from helpdesk.models.ticket import ComplaintTicket, TicketHistory
from helpdesk.models.user import User

__all__ = [
    "ComplaintTicket",
    "TicketHistory",
    "User",
]
