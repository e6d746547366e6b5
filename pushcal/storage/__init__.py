"""Document storage for subscriptions and calendar items."""

from .document_store import CALENDAR_ITEMS, SUBSCRIPTIONS, Collection, DocumentStore, StoreError

__all__ = ["CALENDAR_ITEMS", "SUBSCRIPTIONS", "Collection", "DocumentStore", "StoreError"]
