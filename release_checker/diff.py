"""New-release detection.

A release is new when its version is absent from the set of versions
previously seen for its project. Versions are opaque strings: no ordering
beyond equality is assumed.
"""

from typing import Iterable

from .models import Release


def new_releases(fetched: Iterable[Release], seen: Iterable[str]) -> list[Release]:
    """Return the releases in ``fetched`` whose version is not in ``seen``.

    Duplicate versions in ``fetched`` are collapsed to their first
    occurrence. The result is ordered by ``published_at`` ascending when
    every new release carries a timestamp, otherwise in checker order.

    Args:
        fetched: Complete release list returned by a checker.
        seen: Versions already recorded for the project.

    Returns:
        The newly discovered releases.
    """
    seen_versions = set(seen)
    found: list[Release] = []
    for release in fetched:
        if release.version in seen_versions:
            continue
        seen_versions.add(release.version)
        found.append(release)

    if found and all(r.published_at is not None for r in found):
        # sorted() is stable, ties keep checker order
        found = sorted(found, key=lambda r: r.published_at)
    return found


def merge_seen(seen: Iterable[str], fetched: Iterable[Release]) -> set[str]:
    """Union of the stored versions and the versions just fetched."""
    merged = set(seen)
    merged.update(r.version for r in fetched)
    return merged
