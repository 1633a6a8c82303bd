"""
Domain records for issues, attachments, filters and users.

Parsed from JIRA REST API v2 payloads with ``from_api``; rendered for the
panel UI with ``to_dict`` (camelCase keys, the shape the web view expects).
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

__all__ = [
    "Attachment",
    "FileDescriptor",
    "Filter",
    "Issue",
    "IssueSummary",
    "Profile",
    "UserSummary",
    "browse_url",
]

REST_PATH_MARKER = "/rest/"


def browse_url(self_url: str, key: str) -> str:
    """Human-facing URL of an issue, derived from its API self reference."""
    index = self_url.find(REST_PATH_MARKER)
    base = self_url[:index] if index >= 0 else self_url.rstrip("/")
    return f"{base}/browse/{key}"


@dataclass(frozen=True)
class FileDescriptor:
    """A local file about to be uploaded."""

    path: Path
    name: str
    size: int
    mime_type: str

    @classmethod
    def from_path(cls, path: str | Path) -> FileDescriptor:
        path = Path(path)
        mime_type, _ = mimetypes.guess_type(path.name)
        return cls(
            path=path,
            name=path.name,
            size=path.stat().st_size,
            mime_type=mime_type or "application/octet-stream",
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FileDescriptor:
        return cls(
            path=Path(data["path"]),
            name=data["name"],
            size=int(data["size"]),
            mime_type=data["mimeType"],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"path": str(self.path), "name": self.name, "size": self.size, "mimeType": self.mime_type}


@dataclass
class Attachment:
    """A file attached to an issue.

    Server-confirmed attachments have an ``id``. Placeholders for uploads in
    flight have no id, ``uploading=True`` and a client-local ``progress``.
    """

    id: str | None = None
    filename: str = ""
    mime_type: str | None = None
    size: int = 0
    thumbnail: str | None = None
    content: str | None = None
    created: str | None = None
    author: str | None = None

    uploading: bool = False
    progress: float = 0.0
    error: str | None = None
    data_uri: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Attachment:
        author = data.get("author") or {}
        return cls(
            id=str(data["id"]) if data.get("id") is not None else None,
            filename=data.get("filename", ""),
            mime_type=data.get("mimeType"),
            size=int(data.get("size") or 0),
            thumbnail=data.get("thumbnail"),
            content=data.get("content"),
            created=data.get("created"),
            author=author.get("displayName"),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Attachment:
        """Inverse of to_dict, for payloads coming back across the panel bridge."""
        return cls(
            id=data.get("id"),
            filename=data.get("filename", ""),
            mime_type=data.get("mimeType"),
            size=int(data.get("size") or 0),
            thumbnail=data.get("thumbnail"),
            content=data.get("content"),
            created=data.get("created"),
            author=data.get("author"),
            uploading=bool(data.get("uploading", False)),
            progress=float(data.get("progress") or 0.0),
            error=data.get("error"),
        )

    @classmethod
    def placeholder(cls, file: FileDescriptor) -> Attachment:
        return cls(
            filename=file.name,
            mime_type=file.mime_type,
            size=file.size,
            uploading=True,
        )

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """UI payload. Image data is never included."""
        return {
            "id": self.id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "size": self.size,
            "thumbnail": self.thumbnail,
            "content": self.content,
            "created": self.created,
            "author": self.author,
            "uploading": self.uploading,
            "progress": self.progress,
            "error": self.error,
        }


@dataclass
class Issue:
    key: str
    self_url: str
    fields: dict[str, Any] = field(default_factory=dict)
    attachments: list[Attachment] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Issue:
        fields = data.get("fields") or {}
        return cls(
            key=data["key"],
            self_url=data.get("self", ""),
            fields=fields,
            attachments=[Attachment.from_api(a) for a in fields.get("attachment") or []],
        )

    @property
    def summary(self) -> str:
        return self.fields.get("summary", "")

    @property
    def browse_url(self) -> str:
        return browse_url(self.self_url, self.key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "self": self.self_url,
            "summary": self.summary,
            "browseUrl": self.browse_url,
            "attachments": [a.to_dict() for a in self.attachments],
        }


@dataclass(frozen=True)
class IssueSummary:
    """One row of a filter result."""

    key: str
    self_url: str
    summary: str
    status: str | None = None
    issue_type: str | None = None
    issue_type_icon: str | None = None
    assignee: str | None = None
    updated: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> IssueSummary:
        fields = data.get("fields") or {}
        status = fields.get("status") or {}
        issue_type = fields.get("issuetype") or {}
        assignee = fields.get("assignee") or {}
        return cls(
            key=data["key"],
            self_url=data.get("self", ""),
            summary=fields.get("summary", ""),
            status=status.get("name"),
            issue_type=issue_type.get("name"),
            issue_type_icon=issue_type.get("iconUrl"),
            assignee=assignee.get("displayName"),
            updated=fields.get("updated"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "self": self.self_url,
            "summary": self.summary,
            "status": self.status,
            "issueType": self.issue_type,
            "issueTypeIcon": self.issue_type_icon,
            "assignee": self.assignee,
            "updated": self.updated,
            "browseUrl": browse_url(self.self_url, self.key),
        }


@dataclass(frozen=True)
class Filter:
    """A saved or built-in issue search."""

    key: str
    name: str
    jql: str
    favourite: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key, "name": self.name, "jql": self.jql, "favourite": self.favourite}


@dataclass(frozen=True)
class UserSummary:
    name: str
    display_name: str
    avatar_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> UserSummary:
        return cls(
            name=data.get("accountId") or data.get("name") or data.get("key", ""),
            display_name=data.get("displayName", ""),
            avatar_url=data.get("avatarUrl"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "displayName": self.display_name, "avatarUrl": self.avatar_url}


@dataclass(frozen=True)
class Profile:
    name: str
    display_name: str
    email: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Profile:
        avatars = data.get("avatarUrls") or {}
        return cls(
            name=data.get("accountId") or data.get("name", ""),
            display_name=data.get("displayName", ""),
            email=data.get("emailAddress"),
            avatar_url=avatars.get("48x48"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "displayName": self.display_name,
            "email": self.email,
            "avatarUrl": self.avatar_url,
        }
