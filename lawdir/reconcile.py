"""
Child Collection Reconciliation
===============================

Brings a profile's child rows (specialisations, languages, courts,
certifications, locations) in line with a submitted set by computing a
delta instead of deleting and re-inserting every row.

Rows and submitted items are matched on a natural key per collection:
- specialisations / practice areas: specialisation_id
- languages: lower-cased language name
- court appearances: (court name, jurisdiction)
- certifications: (name, issuing body)
- firm locations: (address, city, state, postcode)

Matched rows are updated in place, unmatched rows are deleted and
unmatched items are inserted. Duplicate keys in the submitted set collapse
to the last occurrence.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterable, List, Tuple


@dataclass
class Delta:
    """Changes needed to turn the existing rows into the desired set"""
    to_insert: List[Any] = field(default_factory=list)
    to_update: List[Tuple[Any, Any]] = field(default_factory=list)  # (row, item)
    to_delete: List[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_insert or self.to_update or self.to_delete)


def diff_collection(
    existing: Iterable[Any],
    desired: Iterable[Any],
    row_key: Callable[[Any], Hashable],
    item_key: Callable[[Any], Hashable],
) -> Delta:
    """Compute the insert/update/delete delta between rows and desired items."""
    wanted: Dict[Hashable, Any] = {}
    for item in desired:
        wanted[item_key(item)] = item

    delta = Delta()
    matched = set()
    for row in existing:
        key = row_key(row)
        if key in wanted and key not in matched:
            delta.to_update.append((row, wanted[key]))
            matched.add(key)
        else:
            delta.to_delete.append(row)

    delta.to_insert = [item for key, item in wanted.items() if key not in matched]
    return delta


def sync_collection(
    collection: List[Any],
    desired: Iterable[Any],
    row_key: Callable[[Any], Hashable],
    item_key: Callable[[Any], Hashable],
    build: Callable[[Any], Any],
    update: Callable[[Any, Any], None],
) -> Delta:
    """
    Apply the delta to an ORM relationship list.

    The relationship must be configured with `delete-orphan` cascade so
    removed rows are deleted on flush.
    """
    delta = diff_collection(list(collection), desired, row_key, item_key)
    for row in delta.to_delete:
        collection.remove(row)
    for row, item in delta.to_update:
        update(row, item)
    for item in delta.to_insert:
        collection.append(build(item))
    return delta


def _norm(value: Any) -> str:
    return (value or "").strip().lower()


# Natural keys, shared by ORM rows and submitted items (same attribute names)

def specialisation_key(obj) -> Hashable:
    return obj.specialisation_id


def language_key(obj) -> Hashable:
    return _norm(obj.language_name)


def court_key(obj) -> Hashable:
    return (_norm(obj.court_name), _norm(obj.jurisdiction))


def certification_key(obj) -> Hashable:
    return (_norm(obj.name), _norm(obj.issuing_body))


def location_key(obj) -> Hashable:
    return (_norm(obj.address), _norm(obj.city), _norm(obj.state), _norm(obj.postcode))
