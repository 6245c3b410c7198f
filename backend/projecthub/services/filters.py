"""
Dashboard filtering and tab selection.

Pure functions over project records: nothing here touches the store or the
database, so the same helpers serve the API and the tests.

Equipment breakdown keys are either one of the four canonical keys
(``heatExchanger``, ``pressureVessel``, ``storageTank``, ``reactor``) or the
normalized form of any other equipment type name (whitespace removed,
lower-cased). Display order is always canonical first, then other types by
readable name; key insertion order is never relied upon.
"""
from datetime import date, datetime, timezone
from typing import Any, Iterable, Optional, Sequence, Union

from dateutil import parser as date_parser

from projecthub.schemas.filters import (
    ALL_CLIENTS,
    ALL_EQUIPMENT,
    ALL_MANAGERS,
    ProjectFilters,
    ProjectTab,
)
from projecthub.schemas.project import (
    DashboardTotals,
    EquipmentBucket,
    FilterOptions,
    ProjectRecord,
    TabCounts,
)

CANONICAL_EQUIPMENT: dict[str, str] = {
    "heatExchanger": "Heat Exchanger",
    "pressureVessel": "Pressure Vessel",
    "storageTank": "Storage Tank",
    "reactor": "Reactor",
}

OTHER_EQUIPMENT = "Other"


def normalize_equipment_type(name: str) -> str:
    """Strip all whitespace and lower-case an equipment type name."""
    return "".join(name.split()).lower()


_CANONICAL_BY_NORMALIZED = {
    normalize_equipment_type(name): key for key, name in CANONICAL_EQUIPMENT.items()
}


def equipment_bucket_key(type_name: str) -> str:
    normalized = normalize_equipment_type(type_name)
    return _CANONICAL_BY_NORMALIZED.get(normalized, normalized)


def derive_breakdown(equipment: Iterable[dict[str, Any]]) -> tuple[dict[str, int], dict[str, str]]:
    """
    Count equipment units by type.

    Returns:
        (breakdown, type_names): counts per bucket key, and the readable name
        of every non-canonical bucket. Both are empty when there is no
        equipment at all.
    """
    units = list(equipment)
    if not units:
        return {}, {}

    breakdown = {key: 0 for key in CANONICAL_EQUIPMENT}
    type_names: dict[str, str] = {}
    for unit in units:
        type_name = (unit.get("type") or OTHER_EQUIPMENT).strip()
        key = equipment_bucket_key(type_name)
        breakdown[key] = breakdown.get(key, 0) + 1
        if key not in CANONICAL_EQUIPMENT:
            type_names.setdefault(key, type_name)
    return breakdown, type_names


def readable_equipment_name(key: str, type_names: Optional[dict[str, str]] = None) -> str:
    if key in CANONICAL_EQUIPMENT:
        return CANONICAL_EQUIPMENT[key]
    return (type_names or {}).get(key, key)


def _bucket_matches(key: str, requested: str, type_names: dict[str, str]) -> bool:
    if key in CANONICAL_EQUIPMENT:
        return CANONICAL_EQUIPMENT[key] == requested
    if requested == OTHER_EQUIPMENT:
        return True
    return (
        readable_equipment_name(key, type_names) == requested
        or normalize_equipment_type(requested) == key
    )


def has_equipment_type(project: ProjectRecord, requested: str) -> bool:
    return any(
        count > 0 and _bucket_matches(key, requested, project.equipment_type_names)
        for key, count in project.equipment_breakdown.items()
    )


def _matches_search(project: ProjectRecord, query: str) -> bool:
    needle = query.lower()
    return any(
        needle in (value or "").lower()
        for value in (project.name, project.po_number, project.client, project.location)
    )


def apply_filters(projects: Sequence[ProjectRecord], filters: ProjectFilters) -> list[ProjectRecord]:
    """Keep the projects matching every active filter, in input order."""
    filtered = []
    for project in projects:
        if filters.client != ALL_CLIENTS and project.client != filters.client:
            continue
        if filters.manager != ALL_MANAGERS and project.manager != filters.manager:
            continue
        if filters.equipment_type != ALL_EQUIPMENT and not has_equipment_type(project, filters.equipment_type):
            continue
        if filters.search_query and not _matches_search(project, filters.search_query):
            continue
        filtered.append(project)
    return filtered


# ============================================================================
# TABS
# ============================================================================

def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_deadline(value: Union[str, date, None]) -> Optional[date]:
    """Deadline as a date, or None when absent or unparseable."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if not text:
        return None
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        return None


def is_overdue(project: ProjectRecord, today: date) -> bool:
    deadline = parse_deadline(project.deadline)
    return deadline is not None and deadline < today and not project.is_completed


def is_active(project: ProjectRecord, today: date) -> bool:
    deadline = parse_deadline(project.deadline)
    return deadline is not None and deadline >= today and not project.is_completed


def select_tab(
    projects: Sequence[ProjectRecord],
    tab: ProjectTab,
    today: Optional[date] = None,
) -> list[ProjectRecord]:
    """
    Projects shown under a dashboard tab.

    Projects without a parseable deadline appear in neither ``overdue`` nor
    ``active``. ``all`` lists open projects first and completed ones last,
    keeping the input order within each group.
    """
    today = today or utc_today()
    if tab == ProjectTab.OVERDUE:
        return [p for p in projects if is_overdue(p, today)]
    if tab == ProjectTab.ACTIVE:
        return [p for p in projects if is_active(p, today)]
    if tab == ProjectTab.COMPLETED:
        return [p for p in projects if p.is_completed]
    open_projects = [p for p in projects if not p.is_completed]
    completed = [p for p in projects if p.is_completed]
    return open_projects + completed


def tab_counts(projects: Sequence[ProjectRecord], today: Optional[date] = None) -> TabCounts:
    today = today or utc_today()
    return TabCounts(
        all=len(projects),
        overdue=sum(1 for p in projects if is_overdue(p, today)),
        active=sum(1 for p in projects if is_active(p, today)),
        completed=sum(1 for p in projects if p.is_completed),
    )


# ============================================================================
# DISPLAY HELPERS
# ============================================================================

def breakdown_display(project: ProjectRecord) -> list[EquipmentBucket]:
    """Equipment buckets in display order: canonical types, then the rest by name."""
    breakdown = project.equipment_breakdown
    buckets = [
        EquipmentBucket(key=key, name=name, count=breakdown[key])
        for key, name in CANONICAL_EQUIPMENT.items()
        if key in breakdown
    ]
    others = [
        EquipmentBucket(
            key=key,
            name=readable_equipment_name(key, project.equipment_type_names),
            count=count,
        )
        for key, count in breakdown.items()
        if key not in CANONICAL_EQUIPMENT
    ]
    return buckets + sorted(others, key=lambda bucket: (bucket.name.lower(), bucket.key))


def dashboard_totals(
    projects: Sequence[ProjectRecord],
    filtered: Sequence[ProjectRecord],
    filters: ProjectFilters,
) -> DashboardTotals:
    """Header totals: whole list when no filter is active, else the filtered list."""
    source = projects if filters.is_default else filtered
    return DashboardTotals(
        total_projects=len(source),
        total_equipment=sum(p.equipment_count for p in source),
    )


def filter_options(projects: Sequence[ProjectRecord]) -> FilterOptions:
    """Values offered by the filter bar dropdowns."""
    clients = sorted({p.client for p in projects if p.client})
    managers = sorted({p.manager for p in projects if p.manager})
    other_types = sorted({
        readable_equipment_name(key, p.equipment_type_names)
        for p in projects
        for key, count in p.equipment_breakdown.items()
        if key not in CANONICAL_EQUIPMENT and count > 0
    })
    return FilterOptions(
        clients=[ALL_CLIENTS] + clients,
        managers=[ALL_MANAGERS] + managers,
        equipment_types=[ALL_EQUIPMENT] + list(CANONICAL_EQUIPMENT.values()) + other_types,
    )
