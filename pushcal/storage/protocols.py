"""Protocol definitions for document collections.

Services depend on these interfaces rather than on the SQLite store so they
can be exercised against any collection-like object.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol


class DocumentCollection(Protocol):
    """Protocol for a collection of JSON documents keyed by a store-assigned id."""

    name: str

    async def insert(self, document: dict[str, Any]) -> str:
        """Store a new document.

        Args:
            document: JSON-serializable mapping; an ``id`` key is ignored

        Returns:
            The identifier assigned to the document
        """
        ...

    async def find(self, query: dict[str, Any]) -> list[dict[str, Any]]:
        """Return all documents whose fields equal the query values, in insertion order."""
        ...

    async def find_one(self, query: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Return the first matching document, or None."""
        ...

    async def update(self, query: dict[str, Any], document: dict[str, Any]) -> int:
        """Replace the body of every matching document, keeping its id.

        Returns:
            Number of documents replaced
        """
        ...

    async def remove(self, query: dict[str, Any]) -> int:
        """Delete every matching document.

        Returns:
            Number of documents removed
        """
        ...
