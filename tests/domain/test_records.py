from __future__ import annotations

from datetime import UTC, datetime

import pytest

from dupmerge.domain.records import (
    StoreDocument,
    build_records,
    has_value,
    normalize_identity_key,
    parse_timestamp,
    relation_ids,
    values_equivalent,
)


@pytest.mark.parametrize("value", [None, "", "   ", [], (), {}])
def test_has_value_rejects_empty_forms(value: object) -> None:
    assert not has_value(value)


@pytest.mark.parametrize("value", ["x", 0, False, ["a"]])
def test_has_value_accepts_present_values(value: object) -> None:
    assert has_value(value)


def test_values_equivalent_treats_empty_forms_as_equal() -> None:
    assert values_equivalent(None, "")
    assert values_equivalent([], None)
    assert values_equivalent("a", "a")
    assert not values_equivalent("a", None)
    assert not values_equivalent("a", "b")


def test_normalize_identity_key_lowercases_and_trims() -> None:
    assert normalize_identity_key("  X@Y.com ") == "x@y.com"
    assert normalize_identity_key("   ") is None
    assert normalize_identity_key(None) is None


def test_parse_timestamp_handles_zulu_and_naive_values() -> None:
    assert parse_timestamp("2024-01-07T12:00:00.000Z") == datetime(2024, 1, 7, 12, tzinfo=UTC)
    assert parse_timestamp("2024-01-07T12:00:00") == datetime(2024, 1, 7, 12, tzinfo=UTC)
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp(1234) is None


def test_relation_ids_accepts_strings_and_mappings() -> None:
    assert relation_ids(["a", {"id": "b"}, {"id": ""}, None, " "]) == ["a", "b"]
    assert relation_ids(None) == []


def test_build_records_skips_missing_ids_and_keeps_bad_timestamps() -> None:
    documents = [
        StoreDocument(id=None, properties={"email": "x@y.com"}, created_time="2020-01-01"),
        StoreDocument(id="a", properties={"email": "x@y.com"}, created_time="garbage"),
        StoreDocument(
            id="b",
            properties={"email": "", "identifier": "Z@Y.com"},
            created_time="2021-01-01T00:00:00Z",
        ),
    ]

    records = build_records(documents, identity_paths=("email", "identifier"))

    assert [record.id for record in records] == ["a", "b"]
    assert records[0].created_at is None
    assert records[0].position == 1
    assert records[1].identity_key == "Z@Y.com"
    assert records[1].created_at == datetime(2021, 1, 1, tzinfo=UTC)
