"""Deduplicate place search results: the same venue often comes back 2-3 times."""

import math
from dataclasses import replace
from typing import List

from trip_planner.config import DEDUP_THRESHOLD_DEGREES
from trip_planner.models import PlaceResult


def _richness_score(place: PlaceResult) -> int:
    """Count non-empty useful fields (higher = more complete result)."""
    score = 0
    if place.name:
        score += 2
    if place.formatted_address:
        score += 2
    if place.place_id:
        score += 1
    if place.importance is not None:
        score += 1
    if place.rating is not None:
        score += 1
    if place.types:
        score += 1
    return score


def _merge_pair(primary: PlaceResult, secondary: PlaceResult) -> PlaceResult:
    """Merge secondary's non-empty fields into primary."""
    if not primary.name and secondary.name:
        primary.name = secondary.name
    if not primary.formatted_address and secondary.formatted_address:
        primary.formatted_address = secondary.formatted_address
    if not primary.place_id and secondary.place_id:
        primary.place_id = secondary.place_id
    if primary.importance is None and secondary.importance is not None:
        primary.importance = secondary.importance
    if primary.rating is None and secondary.rating is not None:
        primary.rating = secondary.rating
    if not primary.types and secondary.types:
        primary.types = list(secondary.types)
    return primary


def places_match(a: PlaceResult, b: PlaceResult, threshold: float = DEDUP_THRESHOLD_DEGREES) -> bool:
    """Same spot if the raw lat/lng distance is under the threshold.

    Plain Euclidean distance in degrees, not geodesic: a longitude degree
    shrinks toward the poles, which only makes matching stricter there.
    """
    return math.hypot(a.lat - b.lat, a.lng - b.lng) < threshold


def deduplicate_places(
    results: List[PlaceResult],
    threshold: float = DEDUP_THRESHOLD_DEGREES,
) -> List[PlaceResult]:
    """Collapse results that sit on the same spot. Returns a new list.

    Each cluster sits where its first member was in the list and takes the
    fields (and coordinates) of its richest member, filled in from the others.
    """
    if not results:
        return []

    merged: List[PlaceResult] = []
    used = set()
    for i, place_a in enumerate(results):
        if i in used:
            continue
        group = [place_a]
        for j, place_b in enumerate(results[i + 1:], start=i + 1):
            if j in used:
                continue
            if places_match(place_a, place_b, threshold):
                group.append(place_b)
                used.add(j)
        used.add(i)

        group.sort(key=_richness_score, reverse=True)
        primary = replace(group[0], types=list(group[0].types))
        for secondary in group[1:]:
            primary = _merge_pair(primary, secondary)
        merged.append(primary)

    return merged


def rank_places(results: List[PlaceResult]) -> List[PlaceResult]:
    """Most important first when the API scored results; otherwise unchanged.

    Unscored results go after scored ones, in their original order.
    """
    if not any(r.importance is not None for r in results):
        return list(results)
    return sorted(results, key=lambda r: (r.importance is None, -(r.importance or 0.0)))
