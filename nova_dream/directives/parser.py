"""
Directive Parser — finds [[ACTION:<TYPE>|k=v|...]] spans in assistant text.

Grammar (single line):
    [[ACTION:<TYPE>|<k1>=<v1>|<k2>=<v2>|...]]

The type token is [A-Za-z0-9_]+. Values run until the next "|" or "]".
There is no escaping: a "]" inside a value ends the match, so such a
directive is not recognized. Malformed spans are left alone, never raised.
"""

import hashlib
import re
from typing import Dict, List, Optional

from nova_dream.models.directive import ActionDirective, DirectiveKey

DIRECTIVE_PATTERN = re.compile(r"\[\[ACTION:([A-Za-z0-9_]+)\|([^\]\n]+)\]\]")


def parse_parameters(raw: str) -> Dict[str, str]:
    """
    Parse the "|"-delimited parameter segment of a directive.

    Each segment splits on its first "=". Segments without "=", or whose
    key or value is empty after trimming, are dropped. Last duplicate wins.
    """
    params: Dict[str, str] = {}
    for segment in raw.split("|"):
        key, sep, value = segment.partition("=")
        key = key.strip()
        value = value.strip()
        if not sep or not key or not value:
            continue
        params[key] = value
    return params


def render_id_for(content: str) -> str:
    """Content hash used as the render id when the caller supplies none."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def parse_directives(content: str, render_id: Optional[str] = None) -> List[ActionDirective]:
    """Extract every directive from a text, in order of appearance."""
    if not content:
        return []
    render_id = render_id or render_id_for(content)

    directives = []
    for index, match in enumerate(DIRECTIVE_PATTERN.finditer(content)):
        directives.append(ActionDirective(
            key=DirectiveKey(render_id=render_id, index=index),
            type=match.group(1),
            parameters=parse_parameters(match.group(2)),
            raw=match.group(0),
        ))
    return directives


def strip_directives(content: str) -> str:
    """
    Remove every directive span and trim the result.

    Removal repeats until no span is left, since deleting one span can join
    the text around it into a new one.
    """
    if not content:
        return ""
    text = content
    while True:
        stripped = DIRECTIVE_PATTERN.sub("", text)
        if stripped == text:
            break
        text = stripped
    return text.strip()
