from . import admin, admin_clients, admin_invoices, admin_projects, admin_session, contact, health, payments, portal, realtime

__all__ = [
    "admin",
    "admin_clients",
    "admin_invoices",
    "admin_projects",
    "admin_session",
    "contact",
    "health",
    "payments",
    "portal",
    "realtime",
]
