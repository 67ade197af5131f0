"""Document types and the identifier/revision capability required for updates."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from couchlink.core.exceptions import NotAuditableError

__all__ = ["Auditable", "Document", "audit_marker"]


@runtime_checkable
class Auditable(Protocol):
    """Anything that exposes a document identifier and a revision token.

    ``Protocol`` performs static duck typing; at runtime
    :func:`audit_marker` additionally checks that both values are non-empty
    strings.
    """

    @property
    def id(self) -> str | None:
        """Document identifier (``_id``)."""

    @property
    def rev(self) -> str | None:
        """Revision token (``_rev``)."""


class Document(BaseModel):
    """Stock document model.

    Serializes ``id`` and ``rev`` under the store's ``_id`` and ``_rev`` keys
    and keeps any additional fields as-is. Subclass it to describe a record
    shape and use it as the record type for
    :func:`couchlink.parsing.parse`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = Field(default=None, alias="_id")
    rev: str | None = Field(default=None, alias="_rev")


def audit_marker(data: Any) -> tuple[str, str]:
    """Return ``(id, rev)`` for ``data`` or raise :class:`NotAuditableError`.

    Accepts :class:`Auditable` objects and mappings carrying ``_id`` and
    ``_rev`` keys.
    """

    if isinstance(data, Mapping):
        doc_id, rev = data.get("_id"), data.get("_rev")
    elif isinstance(data, Auditable):
        doc_id, rev = data.id, data.rev
    else:
        raise NotAuditableError(
            f"{type(data).__name__} does not expose an identifier and a revision; "
            "_id and _rev need to exist on the data you plan to update"
        )
    if not isinstance(doc_id, str) or not doc_id or not isinstance(rev, str) or not rev:
        raise NotAuditableError("_id and _rev need to exist on the data you plan to update")
    return doc_id, rev
