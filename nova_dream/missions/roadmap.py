"""Roadmap text → proposed missions."""

import re
from typing import List

from nova_dream.models.mission import ProposedMission

_BULLET = re.compile(r"^[-*•]\s*")


def parse_roadmap_text(text: str) -> List[ProposedMission]:
    """One mission per non-empty line, leading bullet removed."""
    missions = []
    for line in text.splitlines():
        title = _BULLET.sub("", line.strip()).strip()
        if title:
            missions.append(ProposedMission(title=title))
    return missions
