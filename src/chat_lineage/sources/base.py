"""Abstract base class for record sources.

A record source lists the chats of the currently active owner (the
character whose chats are shown).  Sources are async because listing is
network- or disk-bound.

Classes
-------
- RecordSource  — abstract base for all record sources
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from chat_lineage.records.models import ChatRecord


class RecordSource(ABC):
    """Protocol for listing the chat records of the active owner."""

    @property
    @abstractmethod
    def owner_key(self) -> str | None:
        """Identity of the currently active owner, or None when none is selected.

        Cached listings are only reused while this value is unchanged.
        """

    @abstractmethod
    async def fetch(self, preview_length: int) -> list[ChatRecord]:
        """Return every record of the active owner.

        Parameters
        ----------
        preview_length:
            Maximum length of the message previews.

        Returns
        -------
        list[ChatRecord]
            Fresh record objects; empty when no owner is selected or the
            owner has no chats.

        Raises
        ------
        Exception
            Any failure of the underlying transport.  Callers translate it
            into a user-facing error.
        """


__all__ = ["RecordSource"]
