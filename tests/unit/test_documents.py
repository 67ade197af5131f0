"""Tests for the document model and the update marker check."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

import pytest

from couchlink.core.exceptions import NotAuditableError
from couchlink.documents import Auditable, Document, audit_marker


@dataclass
class Tracked:
    id: str | None
    rev: str | None


class Untracked:
    title = "no marker"


@pytest.mark.unit
class TestDocument:
    """Test suite for Document."""

    def test_populates_from_store_keys(self) -> None:
        document = Document.model_validate({"_id": "p1", "_rev": "1-a", "title": "Dr. No"})

        assert document.id == "p1"
        assert document.rev == "1-a"
        assert document.model_extra == {"title": "Dr. No"}

    def test_dumps_with_store_keys(self) -> None:
        document = Document(id="p1", rev="1-a")

        assert document.model_dump(by_alias=True) == {"_id": "p1", "_rev": "1-a"}

    def test_is_auditable(self) -> None:
        assert isinstance(Document(), Auditable)


@pytest.mark.unit
class TestAuditMarker:
    """Test suite for audit_marker()."""

    def test_mapping(self) -> None:
        assert audit_marker({"_id": "p1", "_rev": "1-a", "title": "x"}) == ("p1", "1-a")

    def test_read_only_mapping(self) -> None:
        assert audit_marker(MappingProxyType({"_id": "p1", "_rev": "1-a"})) == ("p1", "1-a")

    def test_document(self) -> None:
        assert audit_marker(Document(id="p1", rev="1-a")) == ("p1", "1-a")

    def test_plain_object_with_attributes(self) -> None:
        assert audit_marker(Tracked(id="p1", rev="1-a")) == ("p1", "1-a")

    @pytest.mark.parametrize(
        "data",
        [
            {},
            {"id": "p1", "rev": "1-a"},
            {"_id": "p1", "_rev": ""},
            {"_id": 1, "_rev": "1-a"},
            Document(id="p1"),
            Tracked(id="", rev="1-a"),
            Untracked(),
            None,
            ["p1", "1-a"],
        ],
    )
    def test_rejects_data_without_marker(self, data: object) -> None:
        with pytest.raises(NotAuditableError, match="_id and _rev need to exist"):
            audit_marker(data)

    def test_error_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            audit_marker(object())
