"""
Title similarity — decides whether two mission titles name the same mission.

Titles are normalized (case, punctuation, whitespace), compared exactly,
then by normalized Levenshtein similarity against a threshold.
"""

import re
from typing import Iterable, List, Optional, Set

from pydantic import BaseModel

from nova_dream.models.config import ReconcileConfig
from nova_dream.models.mission import StoredMission

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace, trim."""
    text = title.lower().strip()
    text = _PUNCTUATION.sub("", text)
    text = _WHITESPACE.sub(" ", text)
    return text.strip()


def levenshtein_distance(a: str, b: str) -> int:
    """Minimum insertions, deletions and substitutions turning a into b."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(min(
                    previous[j - 1] + 1,    # substitution
                    current[j - 1] + 1,     # insertion
                    previous[j] + 1,        # deletion
                ))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """(L - distance) / L with L the longer length. Two empty strings give 1.0."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - levenshtein_distance(a, b)) / longest


class TitleMatch(BaseModel):
    mission: StoredMission
    score: float
    exact: bool


class MissionMatcher:
    """Finds the stored mission a proposed title refers to."""

    def __init__(self, config: Optional[ReconcileConfig] = None):
        self.config = config or ReconcileConfig()

    def find_match(
        self,
        title: str,
        candidates: Iterable[StoredMission],
        exclude_ids: Optional[Set[str]] = None,
    ) -> Optional[TitleMatch]:
        """
        Best match for a title among candidates, in candidate order.

        An exact normalized match wins outright. Otherwise the highest
        similarity at or above the threshold wins; on ties the first
        encountered is kept. Missions in exclude_ids are skipped.
        """
        exclude_ids = exclude_ids or set()
        pool: List[StoredMission] = [c for c in candidates if c.id not in exclude_ids]
        target = normalize_title(title)

        for mission in pool:
            if normalize_title(mission.title) == target:
                return TitleMatch(mission=mission, score=1.0, exact=True)

        best: Optional[TitleMatch] = None
        for mission in pool:
            score = similarity(target, normalize_title(mission.title))
            if score < self.config.similarity_threshold:
                continue
            if best is None or score > best.score:
                best = TitleMatch(mission=mission, score=score, exact=False)
        return best
