"""Duplicate detection over listing rows."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable

from sweepclean.monitoring.logger import get_logger

logger = get_logger(__name__)


class DuplicateKind(str, Enum):
    """Reason two rows are considered duplicates."""

    EXACT_URL = "exact_url"
    FUZZY_TITLE = "fuzzy_title"


@dataclass(frozen=True)
class DuplicateGroup:
    """Rows sharing one dedup key, in input order (always two or more)."""

    key: str
    kind: DuplicateKind
    members: tuple[int, ...]

    @property
    def kept(self) -> int:
        """Row index retained under first-seen-wins."""
        return self.members[0]

    @property
    def dropped(self) -> tuple[int, ...]:
        """Row indices removed under first-seen-wins."""
        return self.members[1:]

    @property
    def size(self) -> int:
        return len(self.members)


class DeduplicationGrouper:
    """Partitions rows into duplicate groups by a derived key."""

    def __init__(self, kind: DuplicateKind, key_func: Callable[[Any], str]) -> None:
        """Initialize grouper.

        Args:
            kind: Kind recorded on produced groups
            key_func: Computes the dedup key of an item; empty keys never group
        """
        self.kind = kind
        self.key_func = key_func

    def group(self, rows: Iterable[Any]) -> list[DuplicateGroup]:
        """Find duplicate groups in rows.

        Args:
            rows: Items carrying a ``row_index`` attribute

        Returns:
            Groups in the order their key was first seen
        """
        return self.group_keys((row.row_index, self.key_func(row)) for row in rows)

    def group_keys(self, keyed: Iterable[tuple[int, str]]) -> list[DuplicateGroup]:
        """Find duplicate groups from precomputed ``(row_index, key)`` pairs.

        Pairs may arrive in any order; they are folded by ascending row index
        so first-seen tie-breaks do not depend on how keys were computed.

        Args:
            keyed: Row index and dedup key pairs

        Returns:
            Groups in the order their key was first seen
        """
        buckets: dict[str, list[int]] = {}

        for row_index, key in sorted(keyed, key=lambda pair: pair[0]):
            if not key:
                continue
            buckets.setdefault(key, []).append(row_index)

        groups = [
            DuplicateGroup(key=key, kind=self.kind, members=tuple(members))
            for key, members in buckets.items()
            if len(members) > 1
        ]

        logger.info(
            f"Duplicate scan complete | kind={self.kind.value} | keys={len(buckets)} | "
            f"groups={len(groups)} | dropped={sum(len(g.dropped) for g in groups)}"
        )
        return groups


def dropped_indices(groups: Iterable[DuplicateGroup]) -> set[int]:
    """Collect row indices removed by first-seen-wins across groups.

    Args:
        groups: Duplicate groups of any kinds

    Returns:
        Union of dropped row indices
    """
    dropped: set[int] = set()
    for group in groups:
        dropped.update(group.dropped)
    return dropped

