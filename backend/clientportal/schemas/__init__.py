from clientportal.schemas.activity import ActivityRead
from clientportal.schemas.admin import AdminLoginRequest, AdminSessionRead
from clientportal.schemas.billing import (
    InvoiceCreate,
    InvoiceDetail,
    InvoiceItemCreate,
    InvoiceItemRead,
    InvoiceRead,
    InvoiceUpdate,
    PaymentCreate,
    PaymentRead,
)
from clientportal.schemas.client import (
    ClientAdminRead,
    ClientCreate,
    ClientList,
    ClientRead,
    ClientUpdate,
    MagicLinkResponse,
)
from clientportal.schemas.common import IDModel, MessageResponse, ResourceEnvelope, Timestamped
from clientportal.schemas.contact import ContactMessageCreate, ContactMessageRead
from clientportal.schemas.dashboard import AdminStats, DashboardData, DashboardStats
from clientportal.schemas.delivery import DeliveryCreate, DeliveryRead, DeliveryReview
from clientportal.schemas.message import MessageCreate, MessageMarkAllResponse, MessageRead
from clientportal.schemas.notification import NotificationList, NotificationMarkAllResponse, NotificationRead
from clientportal.schemas.payment import PaymentInitRequest, PaymentProvider, PaymentResult
from clientportal.schemas.project import (
    MilestoneCreate,
    MilestoneRead,
    MilestoneUpdate,
    ProjectCreate,
    ProjectDetail,
    ProjectRead,
    ProjectUpdate,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)

__all__ = [
    "ActivityRead",
    "AdminLoginRequest",
    "AdminSessionRead",
    "AdminStats",
    "ClientAdminRead",
    "ClientCreate",
    "ClientList",
    "ClientRead",
    "ClientUpdate",
    "ContactMessageCreate",
    "ContactMessageRead",
    "DashboardData",
    "DashboardStats",
    "DeliveryCreate",
    "DeliveryRead",
    "DeliveryReview",
    "IDModel",
    "InvoiceCreate",
    "InvoiceDetail",
    "InvoiceItemCreate",
    "InvoiceItemRead",
    "InvoiceRead",
    "InvoiceUpdate",
    "MagicLinkResponse",
    "MessageCreate",
    "MessageMarkAllResponse",
    "MessageRead",
    "MessageResponse",
    "MilestoneCreate",
    "MilestoneRead",
    "MilestoneUpdate",
    "NotificationList",
    "NotificationMarkAllResponse",
    "NotificationRead",
    "PaymentCreate",
    "PaymentInitRequest",
    "PaymentProvider",
    "PaymentRead",
    "PaymentResult",
    "ProjectCreate",
    "ProjectDetail",
    "ProjectRead",
    "ProjectUpdate",
    "ResourceEnvelope",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "Timestamped",
]
