"""Notion document store adapter."""

from __future__ import annotations

from .client import NotionAPIError, NotionClient
from .contacts import CONTACT_POLICY, build_contact_policy
from .schema import NotionPage, NotionPageList, PropertyValue
from .store import NotionDocumentStore
from .translator import document_from_page, simplify_property, simplify_property_key

__all__ = [
    "CONTACT_POLICY",
    "NotionAPIError",
    "NotionClient",
    "NotionDocumentStore",
    "NotionPage",
    "NotionPageList",
    "PropertyValue",
    "build_contact_policy",
    "document_from_page",
    "simplify_property",
    "simplify_property_key",
]
