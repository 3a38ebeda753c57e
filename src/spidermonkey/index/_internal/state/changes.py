"""Fingerprint snapshot diffing."""

from __future__ import annotations

from collections.abc import Mapping

from spidermonkey.index.models import ChangeSet


def diff_fingerprints(previous: Mapping[str, str], current: Mapping[str, str]) -> ChangeSet:
    """Classify paths as added/modified, removed or unchanged.

    Pure function: the three returned sets are disjoint and together cover
    every path in either snapshot.
    """
    added_or_modified = frozenset(
        path for path, digest in current.items() if previous.get(path) != digest
    )
    unchanged = frozenset(current.keys() - added_or_modified)
    removed = frozenset(previous.keys() - current.keys())
    return ChangeSet(added_or_modified=added_or_modified, removed=removed, unchanged=unchanged)
