"""Field-level comparison of two states of an artifact."""

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Final

if TYPE_CHECKING:
    from tracyfy.artifacts._types import ArtifactRecord

# Bookkeeping fields that change on every save.
_VOLATILE_FIELDS: Final = frozenset({"last_modified"})


@dataclass(frozen=True, slots=True)
class FieldChange:
    """One attribute that differs between two record states.

    Attributes:
        field: Attribute name on the record dataclass.
        old: Value in the earlier state.
        new: Value in the later state.
    """

    field: str
    old: Any  # pyright: ignore[reportExplicitAny]
    new: Any  # pyright: ignore[reportExplicitAny]


def diff_records(
    old: ArtifactRecord,
    new: ArtifactRecord,
    *,
    include_volatile: bool = False,
) -> list[FieldChange]:
    """List the attributes that differ between two records of the same kind.

    Args:
        old: Earlier state.
        new: Later state.
        include_volatile: Also report ``last_modified``.

    Returns:
        Changes in dataclass field order; empty when the states match.

    Raises:
        TypeError: If the records are of different kinds.

    Example:
        >>> from tracyfy.artifacts import Requirement
        >>> diff_records(Requirement(title="A"), Requirement(title="B"))
        [FieldChange(field='title', old='A', new='B')]
    """
    if type(old) is not type(new):
        msg = f"Cannot compare {type(old).__name__} with {type(new).__name__}"
        raise TypeError(msg)

    changes: list[FieldChange] = []
    for record_field in fields(old):
        name = record_field.name
        if not include_volatile and name in _VOLATILE_FIELDS:
            continue
        before = getattr(old, name)
        after = getattr(new, name)
        if before != after:
            changes.append(FieldChange(field=name, old=before, new=after))
    return changes
