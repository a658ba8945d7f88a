"""cfn_magic.reconcile - Read-modify-write of named entries in AWS collections.

Several AWS configurations are a single document holding a list of entries
(bucket notification topic configurations, for example). A custom resource
owns exactly one entry in such a list, addressed by an identity value and
never by position: other stacks may add or remove their own entries
between our fetch and our write.

There is no version check before write-back. Two invocations touching the
same collection at the same time can lose an update; CloudFormation is
expected to serialize operations against a single bucket.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

__all__ = [
    "ReconciliationContext",
    "by_field",
    "find_entry",
    "paginated_search",
    "reconcile_create",
    "reconcile_delete",
    "reconcile_modify",
    "remove_entries",
    "upsert_entry",
]

Entry = Dict[str, Any]
Identity = Callable[[Any], Any]


def by_field(name: str = "Id") -> Identity:
    """Identity function reading a single field of a mapping entry."""

    def identity(entry: Any) -> Any:
        if isinstance(entry, Mapping):
            return entry.get(name)
        return None

    return identity


_BY_ID = by_field("Id")


# ---------------------------------------------------------------------------
# List primitives
# ---------------------------------------------------------------------------


def find_entry(entries: Sequence[Any], key: Any, identity: Identity = _BY_ID) -> Optional[int]:
    """Index of the first entry whose identity equals ``key``, else None.

    Index 0 is a valid hit; callers must compare the result against None.
    """
    found = False
    index = 0
    for position, entry in enumerate(entries):
        if identity(entry) == key:
            found = True
            index = position
            break
    return index if found else None


def upsert_entry(
    entries: Sequence[Any],
    entry: Any,
    key: Any = None,
    identity: Identity = _BY_ID,
) -> List[Any]:
    """Replace the first entry matching ``key`` in place, or append ``entry``."""
    if key is None:
        key = identity(entry)
    updated = list(entries)
    index = find_entry(updated, key, identity)
    if index is None:
        updated.append(entry)
    else:
        updated[index] = entry
    return updated


def remove_entries(
    entries: Sequence[Any],
    key: Any,
    identity: Identity = _BY_ID,
) -> Tuple[List[Any], int]:
    """Drop every entry matching ``key``; returns (remaining, removed_count)."""
    remaining = [entry for entry in entries if identity(entry) != key]
    return remaining, len(entries) - len(remaining)


# ---------------------------------------------------------------------------
# Reconciliation passes
# ---------------------------------------------------------------------------


@dataclass
class ReconciliationContext:
    """One read-modify-write cycle against a named-entry collection.

    ``fetch`` returns the current entries, or None when no configuration
    object exists at all. ``write`` stores the full list.
    """

    fetch: Callable[[], Optional[Sequence[Any]]]
    write: Callable[[List[Any]], Any]
    key: Any
    build_entry: Callable[[], Any]
    identity: Identity = field(default=_BY_ID)


def reconcile_create(ctx: ReconciliationContext) -> List[Any]:
    """Upsert the desired entry; repeated creates leave a single entry."""
    entries = list(ctx.fetch() or [])
    updated = upsert_entry(entries, ctx.build_entry(), ctx.key, ctx.identity)
    logger.info("[INFO] Upserting entry %r (%d -> %d entries)", ctx.key, len(entries), len(updated))
    ctx.write(updated)
    return updated


def reconcile_modify(ctx: ReconciliationContext, prior_key: Any) -> List[Any]:
    """Move the entry from ``prior_key`` to ``ctx.key`` in a single write."""
    entries = list(ctx.fetch() or [])
    removed = 0
    if prior_key is not None and prior_key != ctx.key:
        entries, removed = remove_entries(entries, prior_key, ctx.identity)
    updated = upsert_entry(entries, ctx.build_entry(), ctx.key, ctx.identity)
    logger.info(
        "[INFO] Replacing entry %r with %r (removed %d)", prior_key, ctx.key, removed
    )
    ctx.write(updated)
    return updated


def reconcile_delete(ctx: ReconciliationContext, key: Any = None) -> Optional[List[Any]]:
    """Remove every entry matching ``key`` (default ``ctx.key``).

    Returns None without writing when no configuration object exists, so a
    delete never creates an empty configuration.
    """
    target = ctx.key if key is None else key
    current = ctx.fetch()
    if current is None:
        logger.info("[INFO] No configuration exists; nothing to delete for %r", target)
        return None
    remaining, removed = remove_entries(list(current), target, ctx.identity)
    if not removed:
        logger.info("[INFO] Entry %r already absent", target)
    ctx.write(remaining)
    return remaining


# ---------------------------------------------------------------------------
# Paginated search
# ---------------------------------------------------------------------------


def paginated_search(
    list_page: Callable[[Optional[str]], Mapping[str, Any]],
    items_key: str,
    predicate: Callable[[Any], bool],
    token_key: str = "NextToken",
) -> Optional[Any]:
    """Walk a token-paginated listing and return the first matching item.

    ``list_page`` is called with the continuation token (None for the first
    page). Stops at the first match; returns None once the pages run out.
    """
    token: Optional[str] = None
    while True:
        page = list_page(token) or {}
        for item in page.get(items_key) or []:
            if predicate(item):
                return item
        token = page.get(token_key)
        if not token:
            return None
