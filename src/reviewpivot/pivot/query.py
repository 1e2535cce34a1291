"""
Typed query description for the pivot engine.

Transports hand raw strings (``sort=rig_appr``, ``dir=DESC``,
``approval_status=dirApproved, clientApproved``) to :func:`build_pivot_query`,
which returns an immutable :class:`PivotQuery` plus any compatibility
warnings.  Only the store turns a query into SQL, always through bound
parameters.

Sort keys
---------

==========================  =============================================
raw value                   parsed
==========================  =============================================
``name`` ``group_1``        ``SortKey(NAME)``
``group1`` ``group_rel``
``relation``                ``SortKey(RELATION)``
``<phase>_work``            ``SortKey(WORK, phase)``  (``_work_status``)
``<phase>_appr``            ``SortKey(APPROVAL, phase)``
                            (``_approval``, ``_approval_status``)
``<phase>_submitted``       ``SortKey(SUBMITTED, phase)``
                            (``_submitted_at``, ``_submitted_at_utc``)
``<phase>_take``            ``SortKey(TAKE, phase)``
==========================  =============================================

Unknown sort keys fall back to ``name`` and unknown preferred phases to
``none``; both add a warning instead of failing the request.  A malformed
direction, page or page size is a :class:`ValidationError`.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from reviewpivot.core.errors import ValidationError
from reviewpivot.pivot.phases import Phase, parse_phase

DEFAULT_ROOT = "assets"
DEFAULT_PER_PAGE = 15
MAX_PER_PAGE = 200
DEFAULT_MAX_ROWS = 100_000


class SortField(str, Enum):
    NAME = "name"
    RELATION = "relation"
    WORK = "work"
    APPROVAL = "appr"
    SUBMITTED = "submitted"
    TAKE = "take"

    @property
    def phase_qualified(self) -> bool:
        return self not in (SortField.NAME, SortField.RELATION)

    @property
    def phase_optional(self) -> bool:
        """Without a phase, ``submitted`` means the latest submission of any phase."""
        return self is SortField.SUBMITTED


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | SortDirection | None) -> SortDirection:
        if isinstance(value, SortDirection):
            return value
        raw = (value or "").strip().lower()
        if not raw:
            return cls.ASC
        try:
            return cls(raw)
        except ValueError:
            raise ValidationError(
                f"dir must be 'asc' or 'desc', got {value!r}",
                field="dir",
                value=value,
                constraint="asc|desc",
            ) from None


class NameMatch(str, Enum):
    PREFIX = "prefix"
    CONTAINS = "contains"
    EXACT = "exact"


class ViewMode(str, Enum):
    LIST = "list"
    GROUPED = "grouped"

    @classmethod
    def parse(cls, value: str | ViewMode | None) -> ViewMode:
        if isinstance(value, ViewMode):
            return value
        raw = (value or "").strip().lower()
        if raw in ("grouped", "group", "category"):
            return cls.GROUPED
        if raw in ("", "list", "flat"):
            return cls.LIST
        raise ValidationError(
            f"view must be 'list' or 'grouped', got {value!r}",
            field="view",
            value=value,
        )


_NAME_ALIASES = frozenset({"name", "group_1", "group1", "group_rel"})

_ANY_PHASE_SUBMITTED_ALIASES = frozenset(
    {"submitted", "submitted_at", "submitted_at_utc", "global_submitted", "global_submitted_at"}
)

_FIELD_SUFFIXES: dict[str, SortField] = {
    "work": SortField.WORK,
    "work_status": SortField.WORK,
    "appr": SortField.APPROVAL,
    "approval": SortField.APPROVAL,
    "approval_status": SortField.APPROVAL,
    "submitted": SortField.SUBMITTED,
    "submitted_at": SortField.SUBMITTED,
    "submitted_at_utc": SortField.SUBMITTED,
    "take": SortField.TAKE,
}


@dataclass(frozen=True, slots=True)
class SortKey:
    """A fixed column, or a per-phase column qualified by ``phase``.

    ``SortKey(SortField.SUBMITTED)`` with no phase orders by the most
    recent ``submitted_at_utc`` across all phase slots.
    """

    field: SortField = SortField.NAME
    phase: Phase | None = None

    def __post_init__(self) -> None:
        if self.field.phase_qualified and not self.field.phase_optional and self.phase is None:
            raise ValueError(f"sort field {self.field.value!r} needs a phase")
        if not self.field.phase_qualified and self.phase is not None:
            raise ValueError(f"sort field {self.field.value!r} takes no phase")

    def __str__(self) -> str:
        if self.phase is None:
            return self.field.value
        return f"{self.phase.value}_{self.field.value}"

    @classmethod
    def parse(cls, value: str | None) -> SortKey:
        """Parse a raw sort key.

        Raises:
            ValueError: For keys that name no known column.
        """
        raw = (value or "").strip().lower()
        if not raw or raw in _NAME_ALIASES:
            return cls(SortField.NAME)
        if raw == "relation":
            return cls(SortField.RELATION)
        if raw in _ANY_PHASE_SUBMITTED_ALIASES:
            return cls(SortField.SUBMITTED)

        code, _, suffix = raw.partition("_")
        if suffix in _FIELD_SUFFIXES:
            try:
                phase = parse_phase(code)
            except ValueError:
                phase = None
            if phase is not None:
                return cls(_FIELD_SUFFIXES[suffix], phase)
        raise ValueError(f"unknown sort key {value!r}")


NAME_ASC = SortKey(SortField.NAME)


def normalize_statuses(values: str | Iterable[str] | None) -> frozenset[str]:
    """Split comma lists, trim, lowercase and drop blanks.

    >>> sorted(normalize_statuses(["dirApproved, clientApproved", " "]))
    ['clientapproved', 'dirapproved']
    """
    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    out = set()
    for value in values:
        for part in value.split(","):
            part = part.strip().lower()
            if part:
                out.add(part)
    return frozenset(out)


@dataclass(frozen=True, slots=True)
class StatusFilter:
    """Allowed approval and work statuses, lowercased.

    An empty set places no constraint on that dimension.
    """

    approval: frozenset[str] = frozenset()
    work: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.approval and not self.work


@dataclass(frozen=True, slots=True)
class PivotQuery:
    """Everything the engine needs to produce one page."""

    project: str
    root: str = DEFAULT_ROOT
    offset: int = 0
    limit: int = DEFAULT_PER_PAGE
    sort: SortKey = NAME_ASC
    direction: SortDirection = SortDirection.ASC
    preferred_phase: Phase | None = None
    name_filter: str | None = None
    name_match: NameMatch = NameMatch.PREFIX
    statuses: StatusFilter = field(default_factory=StatusFilter)
    view: ViewMode = ViewMode.LIST
    max_rows: int = DEFAULT_MAX_ROWS

    @property
    def page(self) -> int:
        return self.offset // self.limit + 1 if self.limit else 1

    def validate(self) -> None:
        """Raise :class:`ValidationError` for queries the engine cannot run."""
        if not self.project or not self.project.strip():
            raise ValidationError("project is required", field="project")
        if not self.root or not self.root.strip():
            raise ValidationError("root is required", field="root")
        if self.offset < 0:
            raise ValidationError("offset must be >= 0", field="offset", value=self.offset)
        if self.limit < 1:
            raise ValidationError("per_page must be >= 1", field="per_page", value=self.limit)
        if self.max_rows < 1:
            raise ValidationError("max_rows must be >= 1", field="max_rows", value=self.max_rows)

    def to_echo(self) -> dict[str, object]:
        """Effective query as reported back to callers."""
        grouped = self.view is ViewMode.GROUPED
        return {
            "project": self.project,
            "root": self.root,
            "view": self.view.value,
            "sort": "name" if grouped else str(self.sort),
            "dir": self.direction.value,
            "phase": self.preferred_phase.value if self.preferred_phase else "none",
            "name": self.name_filter,
            "name_match": self.name_match.value,
            "approval_status": sorted(self.statuses.approval),
            "work_status": sorted(self.statuses.work),
        }


@dataclass(frozen=True, slots=True)
class RecordQuery:
    """Store-level read: which active records to fetch.

    ``locked_phase`` together with ``statuses`` lets the store narrow
    assets by the latest record of that single phase.  Without a locked
    phase, status filtering never happens at the store.
    """

    project: str
    root: str = DEFAULT_ROOT
    name: str | None = None
    name_match: NameMatch = NameMatch.PREFIX
    relation: str | None = None
    locked_phase: Phase | None = None
    statuses: StatusFilter = field(default_factory=StatusFilter)

    @classmethod
    def for_pivot(cls, query: PivotQuery) -> RecordQuery:
        return cls(
            project=query.project,
            root=query.root,
            name=query.name_filter,
            name_match=query.name_match,
            locked_phase=query.preferred_phase,
            statuses=query.statuses if query.preferred_phase else StatusFilter(),
        )


def build_pivot_query(
    *,
    project: str,
    root: str | None = None,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
    sort: str | None = None,
    direction: str | None = None,
    phase: str | None = None,
    name: str | None = None,
    name_match: str | None = None,
    approval_statuses: str | Iterable[str] | None = None,
    work_statuses: str | Iterable[str] | None = None,
    view: str | None = None,
    max_per_page: int = MAX_PER_PAGE,
    max_rows: int = DEFAULT_MAX_ROWS,
) -> tuple[PivotQuery, list[str]]:
    """Validate raw request values into a :class:`PivotQuery`.

    Returns:
        ``(query, warnings)``; warnings describe compatibility fallbacks.

    Raises:
        ValidationError: Missing project, page < 1, per_page outside
            ``[1, max_per_page]``, or a malformed dir/view/name_match.
    """
    warnings: list[str] = []

    if not project or not project.strip():
        raise ValidationError("project is required", field="project")
    if page < 1:
        raise ValidationError("page must be >= 1", field="page", value=page)
    if per_page < 1 or per_page > max_per_page:
        raise ValidationError(
            f"per_page must be between 1 and {max_per_page}",
            field="per_page",
            value=per_page,
            constraint=f"1..{max_per_page}",
        )

    try:
        sort_key = SortKey.parse(sort)
    except ValueError:
        warnings.append(f"unknown sort key {sort!r}; sorting by name")
        sort_key = NAME_ASC

    try:
        preferred = parse_phase(phase)
    except ValueError:
        warnings.append(f"unknown phase {phase!r}; no preferred phase")
        preferred = None

    try:
        match = NameMatch((name_match or NameMatch.PREFIX.value).strip().lower())
    except ValueError:
        raise ValidationError(
            f"name_match must be 'prefix', 'contains' or 'exact', got {name_match!r}",
            field="name_match",
            value=name_match,
        ) from None

    query = PivotQuery(
        project=project.strip(),
        root=(root or DEFAULT_ROOT).strip() or DEFAULT_ROOT,
        offset=(page - 1) * per_page,
        limit=per_page,
        sort=sort_key,
        direction=SortDirection.parse(direction),
        preferred_phase=preferred,
        name_filter=(name or "").strip() or None,
        name_match=match,
        statuses=StatusFilter(
            approval=normalize_statuses(approval_statuses),
            work=normalize_statuses(work_statuses),
        ),
        view=ViewMode.parse(view),
        max_rows=max_rows,
    )
    return query, warnings
