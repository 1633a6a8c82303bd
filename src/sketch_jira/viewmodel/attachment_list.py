"""
Ordered attachment list shown by the issue view.

Server attachments are matched by id. Upload placeholders have no id and
are matched by identity, so two uploads of the same file stay distinct.

An upload confirmed by the server stays in the list until a reload returns
it; a reload fetched before the upload finished cannot drop it.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..models import Attachment

__all__ = ["AttachmentList"]


class AttachmentList:
    def __init__(self, attachments: Iterable[Attachment] = ()) -> None:
        self._items: list[Attachment] = list(attachments)
        # ids of finished uploads not yet seen in a server list
        self._unconfirmed: set[str] = set()

    def __iter__(self) -> Iterator[Attachment]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> Attachment:
        return self._items[index]

    def replace(self, attachments: Iterable[Attachment]) -> None:
        self._items = list(attachments)

    def prepend(self, attachment: Attachment) -> None:
        self._items.insert(0, attachment)

    def index_of(self, attachment_id: str) -> int:
        """Position of the attachment with this id, or -1."""
        for index, attachment in enumerate(self._items):
            if attachment.id is not None and attachment.id == attachment_id:
                return index
        return -1

    def find(self, attachment_id: str) -> Attachment | None:
        index = self.index_of(attachment_id)
        return self._items[index] if index >= 0 else None

    def remove_by_id(self, attachment_id: str) -> Attachment | None:
        self._unconfirmed.discard(attachment_id)
        index = self.index_of(attachment_id)
        if index < 0:
            return None
        return self._items.pop(index)

    def position(self, entry: Attachment) -> int:
        for index, attachment in enumerate(self._items):
            if attachment is entry:
                return index
        return -1

    def replace_at(self, index: int, attachment: Attachment) -> None:
        self._items[index] = attachment

    def replace_in_place(self, entry: Attachment, attachment: Attachment) -> bool:
        index = self.position(entry)
        if index < 0:
            return False
        self._items[index] = attachment
        return True

    def discard(self, entry: Attachment) -> None:
        index = self.position(entry)
        if index >= 0:
            del self._items[index]

    def update_progress(self, placeholder: Attachment, fraction: float) -> None:
        # progress only moves forward
        if fraction > placeholder.progress:
            placeholder.progress = min(fraction, 1.0)

    def mark_failed(self, placeholder: Attachment, message: str) -> None:
        placeholder.uploading = False
        placeholder.error = message

    def resolve_upload(self, placeholder: Attachment, attachment: Attachment) -> None:
        """Swap a finished upload's placeholder for the server attachment.

        If a reload already brought the attachment in, the placeholder is
        dropped instead of producing a duplicate.
        """
        if attachment.id is not None and self.index_of(attachment.id) >= 0:
            self.discard(placeholder)
            return
        if not self.replace_in_place(placeholder, attachment):
            self.prepend(attachment)
        if attachment.id is not None:
            self._unconfirmed.add(attachment.id)

    def uploading(self) -> list[Attachment]:
        return [a for a in self._items if a.uploading]

    def merge_reload(self, server: Iterable[Attachment]) -> None:
        """Apply a fresh server list, keeping local upload state on top.

        Kept ahead of the server list, in their current order: placeholders
        still uploading, failed placeholders, and finished uploads the server
        list does not contain yet. Image data already fetched for an
        attachment is carried over by id.
        """
        server = list(server)
        server_ids = {a.id for a in server if a.id is not None}
        self._unconfirmed = {
            a.id for a in self._items if a.id in self._unconfirmed and a.id not in server_ids
        }

        cached = {a.id: a.data_uri for a in self._items if a.id is not None and a.data_uri}
        merged = [
            a
            for a in self._items
            if (a.id is None and (a.uploading or a.failed)) or a.id in self._unconfirmed
        ]
        seen: set[str] = set(self._unconfirmed)
        for attachment in server:
            if attachment.id is not None:
                if attachment.id in seen:
                    continue
                seen.add(attachment.id)
                if attachment.data_uri is None:
                    attachment.data_uri = cached.get(attachment.id)
            merged.append(attachment)
        self._items = merged
