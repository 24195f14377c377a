"""Tag the traced area."""

from __future__ import annotations

from ..edit.elements import EdObject
from .record import ParcelRecord


def tag_traced_object(obj: EdObject, record: ParcelRecord, source: str) -> None:
    """Merge the record's tags into ``obj`` and set the provenance tags.

    Record tags overwrite existing values, other existing tags are kept.
    ``source`` and ``ref`` are always set. Applying the same record twice
    gives the same tags as applying it once.
    """
    keys = obj.get_keys()
    keys.update(record.tags)
    keys['source'] = source
    keys['ref'] = record.ref
    obj.set_keys(keys)


__all__ = ['tag_traced_object']
