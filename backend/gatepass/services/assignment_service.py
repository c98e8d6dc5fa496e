"""
Approver (warden) assignment resolution.

A request category is routed by consulting an ordered chain of assignment
sources. Each source scans its newest records; the first record that names at
least one current warden for the category wins. Nothing is merged across
records or sources. When every source comes up empty the resolver falls back
to every active warden so that requests can never deadlock.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Sequence
import logging
from sqlalchemy.orm import Session
from gatepass.core.config import settings
from gatepass.core.exceptions import ValidationError
from gatepass.core.permissions import Role
from gatepass.models.assignment import AssignmentConfig, HostelConfig, HostelConfigAlt
from gatepass.models.user import User

logger = logging.getLogger(__name__)

HOSTLER = "hostler"
NON_HOSTLER = "non-hostler"
CATEGORIES = (HOSTLER, NON_HOSTLER)

FALLBACK_SOURCE = "all-wardens"


def normalize_category(value: Optional[str]) -> str:
    """Map the spellings found in old data onto the two canonical categories."""
    s = str(value or "").lower().strip()
    if s in ("non-hostler", "nonhostler", "non_hostler"):
        return NON_HOSTLER
    return s


def normalize_approver_ids(values: Optional[Iterable[Any]]) -> List[int]:
    """
    Collapse mixed identity representations into integer user ids.

    Accepts ints, numeric strings and embedded objects carrying ``id`` or
    ``_id``. Anything else is dropped. Order is kept, duplicates removed.
    """
    ids: List[int] = []
    for value in values or []:
        if isinstance(value, dict):
            value = value.get("id", value.get("_id"))
        if isinstance(value, bool) or value is None:
            continue
        if isinstance(value, str):
            value = value.strip()
            if not value.isdigit():
                continue
        try:
            user_id = int(value)
        except (TypeError, ValueError):
            continue
        if user_id not in ids:
            ids.append(user_id)
    return ids


def active_warden_ids(db: Session, candidates: Optional[Sequence[int]] = None) -> List[int]:
    """Ids of active wardens, optionally restricted to ``candidates``."""
    query = db.query(User.id).filter(User.role == Role.WARDEN, User.is_active.is_(True))
    if candidates is not None:
        if not candidates:
            return []
        query = query.filter(User.id.in_(candidates))
    return sorted(row.id for row in query.all())


class AssignmentSource(ABC):
    """One physical place approver assignments may be stored."""
    name: str = "source"

    @abstractmethod
    def candidate_lists(self, db: Session, category: str, limit: int) -> Iterator[List[int]]:
        """Yield normalized id lists for ``category``, newest record first."""


class TableAssignmentSource(AssignmentSource):
    """
    Reads assignments from a config table.

    ``fields`` maps each category to the JSON columns holding its ids. When a
    record carries more than one column for a category (current plus
    back-compat names) their ids are concatenated.
    """

    def __init__(self, name: str, model, fields: dict):
        self.name = name
        self.model = model
        self.fields = fields

    def candidate_lists(self, db: Session, category: str, limit: int) -> Iterator[List[int]]:
        columns = self.fields.get(category, ())
        records = db.query(self.model).order_by(
            self.model.updated_at.desc(),
            self.model.created_at.desc(),
            self.model.id.desc()
        ).limit(limit).all()

        for record in records:
            raw = []
            for column in columns:
                value = getattr(record, column, None)
                if isinstance(value, list):
                    raw.extend(value)
            yield normalize_approver_ids(raw)


@dataclass
class Resolution:
    """Outcome of resolving a category to approvers."""
    approver_ids: List[int] = field(default_factory=list)
    source: Optional[str] = None
    fallback: bool = False


class AssignmentResolver:
    """Walks the source chain in priority order."""

    def __init__(self, sources: Sequence[AssignmentSource], scan_limit: int = None):
        self.sources = list(sources)
        self.scan_limit = scan_limit or settings.ASSIGNMENT_SCAN_LIMIT

    def resolve(self, db: Session, category: str) -> Resolution:
        """
        Approvers for ``category``.

        A record whose ids include no active warden (deleted accounts, users
        moved to another role) is skipped and the scan goes on to the next
        record, rather than returning ids nobody can act on.
        """
        category = normalize_category(category)

        for source in self.sources:
            for ids in source.candidate_lists(db, category, self.scan_limit):
                if not ids:
                    continue
                wardens = active_warden_ids(db, ids)
                if wardens:
                    logger.debug(f"Resolved {category} to {wardens} via {source.name}")
                    return Resolution(approver_ids=wardens, source=source.name)
                logger.info(
                    f"Assignment record in {source.name} lists {ids} for {category} "
                    "but none is an active warden"
                )

        wardens = active_warden_ids(db)
        logger.warning(
            f"No warden assignment found for category '{category}' in any source; "
            f"falling back to all {len(wardens)} active warden(s). Check assignment config."
        )
        return Resolution(approver_ids=wardens, source=FALLBACK_SOURCE, fallback=True)


def default_sources() -> List[AssignmentSource]:
    """Primary config first, then the legacy tables."""
    legacy_fields = {
        HOSTLER: ("hostler", "hostler_warden_ids"),
        NON_HOSTLER: ("non_hostler", "non_hostler_warden_ids"),
    }
    return [
        TableAssignmentSource(
            "assignment_configs",
            AssignmentConfig,
            {HOSTLER: ("hostler",), NON_HOSTLER: ("non_hostler",)}
        ),
        TableAssignmentSource("hostel_configs", HostelConfig, legacy_fields),
        TableAssignmentSource("hostel_configs_alt", HostelConfigAlt, legacy_fields),
    ]


def get_resolver() -> AssignmentResolver:
    """Dependency returning a resolver over the default source chain."""
    return AssignmentResolver(default_sources())


def get_current_assignments(db: Session) -> AssignmentConfig:
    """Newest primary assignment record, or an empty unsaved one."""
    config = db.query(AssignmentConfig).order_by(
        AssignmentConfig.updated_at.desc(),
        AssignmentConfig.id.desc()
    ).first()
    return config or AssignmentConfig(hostler=[], non_hostler=[])


def update_assignments(db: Session, hostler: List[Any], non_hostler: List[Any]) -> AssignmentConfig:
    """
    Append a new primary assignment record.

    Every id must belong to an active warden. Existing requests keep the
    approvers frozen on them.
    """
    hostler_ids = normalize_approver_ids(hostler)
    non_hostler_ids = normalize_approver_ids(non_hostler)
    all_ids = sorted(set(hostler_ids) | set(non_hostler_ids))
    if len(active_warden_ids(db, all_ids)) != len(all_ids):
        raise ValidationError("One or more IDs are not warden accounts")

    config = AssignmentConfig(hostler=hostler_ids, non_hostler=non_hostler_ids)
    db.add(config)
    db.commit()
    db.refresh(config)
    logger.info(f"Assignment config {config.id} saved: hostler={hostler_ids} non-hostler={non_hostler_ids}")
    return config
