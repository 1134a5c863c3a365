from .authorization import AuthorizationStatus, SortOrder
from .contact import Contact, PhoneNumber, PostalAddress, sort_contacts
from .content_hash import contacts_hash
from .field_selection import ContactField, FieldSelection

__all__ = [
    "AuthorizationStatus",
    "SortOrder",
    "Contact",
    "PhoneNumber",
    "PostalAddress",
    "sort_contacts",
    "contacts_hash",
    "ContactField",
    "FieldSelection",
]
