"""Translate SPARQL bindings into raw studio records."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from studiocat.domain.model import RawEntity

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from .schema import SparqlValue

ENTITY_PREFIX = "http://www.wikidata.org/entity/"


@dataclass(slots=True)
class _StudioRow:
    entity_id: str
    label: str | None = None
    description: str | None = None
    founded: str | None = None
    country: str | None = None
    headquarters: str | None = None
    websites: list[str] = field(default_factory=list)
    employees: int | None = None
    logo: str | None = None


def entity_id_from_uri(uri: str) -> str:
    return uri.removeprefix(ENTITY_PREFIX)


def translate_bindings(
    bindings: Iterable[dict[str, SparqlValue]],
    *,
    source_id: str,
    fetched_at: datetime,
) -> list[RawEntity]:
    """Fold one-row-per-value SPARQL results into one record per studio."""

    rows: dict[str, _StudioRow] = {}
    for binding in bindings:
        studio = binding.get("studio")
        if studio is None:
            continue
        entity_id = entity_id_from_uri(studio.value)
        row = rows.setdefault(entity_id, _StudioRow(entity_id=entity_id))
        _absorb(row, binding)

    return [_to_raw(row, source_id=source_id, fetched_at=fetched_at) for row in rows.values()]


def _value(binding: dict[str, SparqlValue], key: str) -> str | None:
    item = binding.get(key)
    if item is None or not item.value.strip():
        return None
    return item.value.strip()


def _absorb(row: _StudioRow, binding: dict[str, SparqlValue]) -> None:
    label = _value(binding, "studioLabel")
    # the label service echoes the Q-id when no label exists in the requested languages
    if label and label != row.entity_id:
        row.label = row.label or label
    row.description = row.description or _value(binding, "description")
    founded = _value(binding, "founded")
    if founded and (row.founded is None or founded < row.founded):
        row.founded = founded
    row.country = row.country or _value(binding, "countryLabel")
    row.headquarters = row.headquarters or _value(binding, "headquartersLabel")
    website = _value(binding, "website")
    if website and website not in row.websites:
        row.websites.append(website)
    employees = _value(binding, "employees")
    if employees and row.employees is None:
        try:
            row.employees = int(float(employees))
        except ValueError:
            row.employees = None
    row.logo = row.logo or _value(binding, "logo")


def _to_raw(row: _StudioRow, *, source_id: str, fetched_at: datetime) -> RawEntity:
    location_parts = [part for part in (row.headquarters, row.country) if part]
    metadata: dict[str, object] = {"wikidata_id": row.entity_id}
    if row.founded:
        # xsd:dateTime, e.g. 2006-09-01T00:00:00Z
        metadata["founded_date"] = row.founded.lstrip("+")[:10]
    if row.country:
        metadata["country"] = row.country
    if row.employees is not None:
        metadata["employees"] = row.employees

    return RawEntity(
        source_id=source_id,
        source_entity_id=row.entity_id,
        name=row.label or "",
        description=row.description,
        websites=tuple(row.websites),
        location=", ".join(location_parts) or None,
        logo=row.logo,
        metadata=MappingProxyType(metadata),
        last_updated=fetched_at,
    )
