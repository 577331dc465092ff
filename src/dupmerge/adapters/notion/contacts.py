"""Merge policy for the Notion master contacts database.

Read paths are the simplified property keys produced by the translator; write
paths are the Notion display names the update endpoint expects. Every
relation is two-way in Notion, so writing the contact side is enough for the
linked pages to pick up the change.
"""

from __future__ import annotations

from dupmerge.domain.merge.policy import FieldPolicy, MergePolicy
from dupmerge.domain.records import AttributeKind

from . import properties
from .translator import simplify_property_key

EMAIL_PROPERTY = "Email"
IDENTIFIER_PROPERTY = "Identifier"
DEFAULT_EMAIL_MARKETING = "Subscribed"

_RICH_TEXT_FIELDS = (
    ("first_name", "First name"),
    ("last_name", "Last name"),
    ("company", "Company Name"),
    ("street_address", "Street Address"),
    ("street_address_2", "Address Line 2"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal Code"),
    ("country", "Country"),
)

RELATION_PROPERTIES = (
    "Papers",
    "Client db",
    "Sales pipeline",
    "Comms pipeline",
    "Partner pipeline",
    "WebDB: Book endorsements",
)


def _field(
    name: str,
    prop: str,
    *,
    kind: AttributeKind = AttributeKind.SCALAR,
    formatter: properties.Formatter = properties.rich_text,
    default: object = None,
) -> FieldPolicy:
    return FieldPolicy(
        name=name,
        kind=kind,
        read_path=simplify_property_key(prop),
        write_path=prop,
        formatter=formatter,
        default=default,
    )


def build_contact_policy() -> MergePolicy:
    fields = [_field(name, prop) for name, prop in _RICH_TEXT_FIELDS]
    fields.append(
        _field(
            "email_marketing",
            "Email Marketing",
            formatter=properties.select,
            default=DEFAULT_EMAIL_MARKETING,
        )
    )
    fields.append(_field("phone", "Phone", formatter=properties.phone_number))
    fields.append(
        _field("tags", "Tags", kind=AttributeKind.SET, formatter=properties.multi_select)
    )
    fields.extend(
        _field(
            simplify_property_key(prop).removeprefix("property_"),
            prop,
            kind=AttributeKind.RELATION,
            formatter=properties.relation,
        )
        for prop in RELATION_PROPERTIES
    )
    return MergePolicy(
        identity_paths=(
            simplify_property_key(EMAIL_PROPERTY),
            simplify_property_key(IDENTIFIER_PROPERTY),
        ),
        fields=tuple(fields),
    )


CONTACT_POLICY = build_contact_policy()
