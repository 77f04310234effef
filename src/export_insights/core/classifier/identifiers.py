"""
Global-id parsing.

Bulk exports identify every object with a global id such as
``gid://shopify/Order/5512345678`` and link children to parents through
``__parentId``. This module is the only place that understands that
convention; everything downstream works with ``EntityKind``.
"""

import re
from typing import Any

from export_insights.core.models import EntityKind

PARENT_FIELD = "__parentId"
ID_FIELD = "id"

_GID_PATTERN = re.compile(r"^(?:gid://[^/]+/)?(?P<kind>[A-Za-z][A-Za-z0-9]*)/(?P<local_id>[^/?#\s]+)")

_KINDS_BY_PREFIX = {kind.value: kind for kind in EntityKind}


def kind_prefix(identifier: object) -> str | None:
    """
    Return the raw type prefix of a global id, or None if it is not one.

    Examples:
        >>> kind_prefix("gid://shopify/Customer/7390123")
        'Customer'
        >>> kind_prefix("Order/1001")
        'Order'
        >>> kind_prefix("1001") is None
        True
    """
    if not isinstance(identifier, str):
        return None
    match = _GID_PATTERN.match(identifier.strip())
    return match.group("kind") if match else None


def normalize_ids(raw: dict[str, Any]) -> dict[str, Any]:
    """
    Strip surrounding whitespace from a record's id and parent reference,
    in place, so roots and the children pointing at them key alike.
    """
    for key in (ID_FIELD, PARENT_FIELD):
        value = raw.get(key)
        if isinstance(value, str):
            raw[key] = value.strip()
    return raw


def entity_kind(identifier: object) -> EntityKind | None:
    """Map a global id to its EntityKind; None for unknown types."""
    prefix = kind_prefix(identifier)
    if prefix is None:
        return None
    return _KINDS_BY_PREFIX.get(prefix)
