"""Bulk payload: builds action/body lines and reads bulk responses."""

import json
from collections.abc import Mapping

ACTION = "index"
CATEGORY_FIELD = "category"


def build_bulk_body(batch) -> list[str]:
    """Serialize *batch* into bulk lines: one action line, then one body line,
    per record, in batch order.

    Clusters from 8.0 on reject mapping types, so the category travels as a
    ``category`` field of the document. A record that already has one keeps
    it; an empty category adds nothing.
    """
    lines: list[str] = []
    for record in batch:
        body = record.body
        if record.category and CATEGORY_FIELD not in body:
            body = {**body, CATEGORY_FIELD: record.category}
        lines.append(json.dumps({ACTION: {"_index": record.destination}}))
        lines.append(json.dumps(body, default=str))
    return lines


def collect_item_errors(response) -> list[dict]:
    """Return the per-item results that carry an ``error`` cause.

    Anything that does not look like a bulk response with ``errors`` set and
    an ``items`` list yields an empty list instead of raising.
    """
    body = getattr(response, "body", response)
    if not isinstance(body, Mapping) or not body.get("errors"):
        return []

    items = body.get("items")
    if not isinstance(items, list):
        return []

    failed = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        for result in item.values():
            if isinstance(result, Mapping) and result.get("error"):
                failed.append(result)
    return failed
