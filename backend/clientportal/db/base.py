# noqa: F401 to ensure models are imported for metadata
from clientportal.models.activity import ActivityLog
from clientportal.models.billing import Invoice, InvoiceItem, Payment
from clientportal.models.client import Client
from clientportal.models.contact import ContactMessage
from clientportal.models.delivery import Delivery
from clientportal.models.message import Message
from clientportal.models.notification import Notification
from clientportal.models.project import Milestone, Project, Task

__all__ = [
    "ActivityLog",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "Client",
    "ContactMessage",
    "Delivery",
    "Message",
    "Notification",
    "Milestone",
    "Project",
    "Task",
]
