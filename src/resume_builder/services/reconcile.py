"""Reconcile a partial resume update against the loaded resume aggregate.

Clients send partial updates: a section they did not touch is simply absent
from the payload, while a list section they did touch is sent in full. The
persistence layer, on the other hand, needs an instruction for every record it
already holds (update, keep, or delete). ``reconcile`` bridges the two by
producing a complete payload:

- a key absent from the payload is carried over from the loaded resume;
- a single section sent as ``None``/``{}`` is marked for deletion;
- a list section is authoritative: existing records the client no longer
  lists are marked for deletion, records the client sends with a known id
  replace the stored version, and records without an id are creations;
  ids the resume does not hold are dropped;
- an embedded list (``hobbies``) sent in the payload replaces the stored one.

Everything here is a pure transformation over plain mappings (see
``resumes.snapshot_resume`` for how an ORM aggregate is turned into one).
Inputs are never mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from enum import Enum
from typing import Any

from resume_builder.errors import MalformedPayloadError

logger = logging.getLogger(__name__)

__all__ = [
    "ALREADY_UPLOADED",
    "DELETE_FLAG",
    "FieldKind",
    "RESUME_FIELDS",
    "mark_for_deletion",
    "reconcile",
]

# Sent by clients in place of the photo when the photo is already stored
ALREADY_UPLOADED = "___ALREADY_UPLOADED___"

DELETE_FLAG = "delete"
PHOTO_FIELD = "photo"


class FieldKind(str, Enum):
    """How a field of the aggregate root is reconciled."""

    METADATA = "metadata"
    SCALAR = "scalar"
    SINGLE_ASSOC = "single_assoc"
    LIST_ASSOC = "list_assoc"
    EMBEDDED = "embedded"


RESUME_FIELDS: tuple[tuple[str, FieldKind], ...] = (
    ("id", FieldKind.SCALAR),
    ("user_id", FieldKind.SCALAR),
    ("title", FieldKind.SCALAR),
    ("description", FieldKind.SCALAR),
    ("hobbies", FieldKind.EMBEDDED),
    ("personal_info", FieldKind.SINGLE_ASSOC),
    ("experiences", FieldKind.LIST_ASSOC),
    ("education", FieldKind.LIST_ASSOC),
    ("skills", FieldKind.LIST_ASSOC),
    ("spoken_languages", FieldKind.LIST_ASSOC),
    ("supplementary_skills", FieldKind.LIST_ASSOC),
    ("inserted_at", FieldKind.METADATA),
    ("updated_at", FieldKind.METADATA),
)

# Marker for "key not present in the payload" (distinct from an explicit None)
_MISSING: Any = object()


def mark_for_deletion(record: Mapping[str, Any]) -> dict[str, Any]:
    """Return a copy of ``record`` flagged for removal by the persistence layer."""
    return {**record, DELETE_FLAG: True}


def reconcile(
    loaded_root: Mapping[str, Any],
    payload: Mapping[str, Any],
    fields: Sequence[tuple[str, FieldKind]] = RESUME_FIELDS,
) -> dict[str, Any]:
    """Build a complete update payload from a partial one.

    Args:
        loaded_root: The aggregate as currently persisted, associations
            materialized as mappings / lists of mappings.
        payload: Partial update keyed by field name.
        fields: Ordered ``(field name, kind)`` declarations of the aggregate.

    Returns:
        A payload keyed like ``fields`` (in declaration order). An association
        that is empty in ``loaded_root`` and absent from ``payload`` is left out.

    Raises:
        MalformedPayloadError: If an association value is not a mapping / list
            of mappings.
    """
    known = {name for name, _ in fields}
    ignored = [key for key in payload if key not in known]
    if ignored:
        logger.debug("Ignoring unknown update keys: %s", ", ".join(map(str, ignored)))

    result: dict[str, Any] = {}
    for name, kind in fields:
        value = _HANDLERS[kind](name, loaded_root.get(name), payload.get(name, _MISSING))
        if value is not _MISSING:
            result[name] = value
    return result


def _reconcile_plain(name: str, existing: Any, supplied: Any) -> Any:
    return existing if supplied is _MISSING else supplied


def _reconcile_single(name: str, existing: Any, supplied: Any) -> Any:
    if existing is None or existing == {}:
        if supplied is _MISSING:
            return _MISSING
        if supplied is None or supplied == {}:
            return supplied
        return _strip_uploaded_photo(_require_record(name, supplied))

    if supplied is _MISSING:
        return dict(existing)
    if supplied is None or supplied == {}:
        return mark_for_deletion(existing)

    # The client is updating the record it already has, whatever id it sent
    record = {**_require_record(name, supplied), "id": existing["id"]}
    return _strip_uploaded_photo(record)


def _reconcile_list(name: str, existing: Any, supplied: Any) -> Any:
    existing = existing or []
    clears = supplied is None or (isinstance(supplied, list) and supplied == [None])

    if supplied is _MISSING:
        return [dict(record) for record in existing] if existing else _MISSING
    if clears:
        return [mark_for_deletion(record) for record in existing]

    with_ids: dict[str, Mapping[str, Any]] = {}
    creations: list[dict[str, Any]] = []
    for record in _require_records(name, supplied):
        # An explicit `"id": None` is a creation too
        if record.get("id") is None:
            creations.append(dict(record))
        else:
            with_ids[str(record["id"])] = record

    merged: list[dict[str, Any]] = []
    for record in existing:
        update = with_ids.pop(str(record["id"]), None)
        merged.append(mark_for_deletion(record) if update is None else dict(update))

    if with_ids:
        logger.warning(
            "Dropping %d %s entries whose ids are not on the resume: %s",
            len(with_ids),
            name,
            ", ".join(sorted(with_ids)),
        )

    merged.extend(creations)
    return merged


def _reconcile_embedded(name: str, existing: Any, supplied: Any) -> Any:
    if supplied is _MISSING:
        return _copy_structure(existing)
    if supplied is None:
        return None

    if isinstance(existing, Mapping) and isinstance(supplied, Mapping):
        if supplied.get("id") is None and existing.get("id") is not None:
            return {**supplied, "id": existing["id"]}
        return dict(supplied)

    if isinstance(supplied, list):
        return [dict(r) for r in _require_records(name, supplied)]

    # Nothing stored yet (or a shape change): the payload wins
    return supplied


def _copy_structure(value: Any) -> Any:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, list):
        return [dict(v) if isinstance(v, Mapping) else v for v in value]
    return value


def _require_record(name: str, value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedPayloadError({name: ["must be an object"]})
    return value


def _require_records(name: str, value: Any) -> list[Mapping[str, Any]]:
    if not isinstance(value, list):
        raise MalformedPayloadError({name: ["must be a list of objects"]})
    errors = {
        f"{name}.{position}": ["must be an object"]
        for position, record in enumerate(value)
        if not isinstance(record, Mapping)
    }
    if errors:
        raise MalformedPayloadError(errors)
    return value


def _strip_uploaded_photo(record: Mapping[str, Any]) -> dict[str, Any]:
    photo = record.get(PHOTO_FIELD)
    if photo == ALREADY_UPLOADED or (isinstance(photo, Mapping) and "file_name" in photo):
        return {key: value for key, value in record.items() if key != PHOTO_FIELD}
    return dict(record)


_HANDLERS: dict[FieldKind, Callable[[str, Any, Any], Any]] = {
    FieldKind.METADATA: _reconcile_plain,
    FieldKind.SCALAR: _reconcile_plain,
    FieldKind.SINGLE_ASSOC: _reconcile_single,
    FieldKind.LIST_ASSOC: _reconcile_list,
    FieldKind.EMBEDDED: _reconcile_embedded,
}
