from clientportal.services.activity import ActivityLogService
from clientportal.services.admin_session import AdminAuthGate, AdminSession, MemorySessionStore, SignedCookieStore
from clientportal.services.clients import ClientService
from clientportal.services.contact import ContactService
from clientportal.services.dashboard import DashboardService
from clientportal.services.deliveries import DeliveryService
from clientportal.services.invoices import InvoiceService
from clientportal.services.messages import MessageService
from clientportal.services.notifications import NotificationService
from clientportal.services.payments import PaymentClient
from clientportal.services.projects import ProjectService

__all__ = [
    "ActivityLogService",
    "AdminAuthGate",
    "AdminSession",
    "ClientService",
    "ContactService",
    "DashboardService",
    "DeliveryService",
    "InvoiceService",
    "MemorySessionStore",
    "MessageService",
    "NotificationService",
    "PaymentClient",
    "ProjectService",
    "SignedCookieStore",
]
