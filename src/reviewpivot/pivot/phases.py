"""
Pipeline phases and status vocabularies.

The phase table is static configuration: five phases in a fixed order,
each with a short code stored in ``t_review_info.phase`` and a display
name for column headers.

    ┌──────┬─────────┬────────────────┐
    │ code │ ordinal │ display name   │
    ├──────┼─────────┼────────────────┤
    │ mdl  │ 1       │ Modeling       │
    │ rig  │ 2       │ Rigging        │
    │ bld  │ 3       │ Building       │
    │ dsn  │ 4       │ Design Review  │
    │ ldv  │ 5       │ Lighting / Dev │
    └──────┴─────────┴────────────────┘

The status vocabularies are advisory: they feed CLI help and the
``/reviews/phases`` endpoint, but filters accept any value and match it
case-insensitively.
"""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType


class Phase(str, Enum):
    """Pipeline phase, valued by its storage code."""

    MDL = "mdl"
    RIG = "rig"
    BLD = "bld"
    DSN = "dsn"
    LDV = "ldv"

    @property
    def ordinal(self) -> int:
        """1-based position in the pipeline."""
        return PHASES.index(self) + 1

    @property
    def display_name(self) -> str:
        return PHASE_DISPLAY_NAMES[self]


PHASES: tuple[Phase, ...] = tuple(Phase)

PHASE_DISPLAY_NAMES = MappingProxyType(
    {
        Phase.MDL: "Modeling",
        Phase.RIG: "Rigging",
        Phase.BLD: "Building",
        Phase.DSN: "Design Review",
        Phase.LDV: "Lighting / Dev",
    }
)

PHASE_CODES: frozenset[str] = frozenset(p.value for p in Phase)

# Sentinel accepted wherever a preferred phase is optional
NO_PHASE = "none"

APPROVAL_STATUSES: tuple[str, ...] = (
    "check",
    "clientReview",
    "dirReview",
    "epdReview",
    "clientOnHold",
    "dirOnHold",
    "epdOnHold",
    "execRetake",
    "clientRetake",
    "dirRetake",
    "epdRetake",
    "clientApproved",
    "dirApproved",
    "epdApproved",
    "other",
    "omit",
)

WORK_STATUSES: tuple[str, ...] = (
    "check",
    "cgsvOnHold",
    "svOnHold",
    "leadOnHold",
    "cgsvRetake",
    "svRetake",
    "leadRetake",
    "cgsvApproved",
    "svApproved",
    "leadApproved",
    "svOther",
    "leadOther",
)


def parse_phase(value: str | Phase | None) -> Phase | None:
    """Parse a phase code.

    ``None``, ``""`` and ``"none"`` mean "no phase".  Codes are
    case-insensitive.

    Raises:
        ValueError: For anything else.
    """
    if value is None or isinstance(value, Phase):
        return value
    code = value.strip().lower()
    if code in ("", NO_PHASE):
        return None
    try:
        return Phase(code)
    except ValueError:
        raise ValueError(f"unknown phase {value!r}") from None
