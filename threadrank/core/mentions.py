"""Extraction of ``@handle`` pings from comment bodies."""

import re
from typing import List

# A handle directly after "@", where the "@" does not continue a word (e-mail addresses).
MENTION_RE = re.compile(r"(?<![\w.+-])@([A-Za-z0-9_-]+)")


def extract_mentions(body: str) -> List[str]:
    """Return the ``@handle`` pings of a comment body, in order of appearance, without duplicates."""
    seen = []
    for handle in MENTION_RE.findall(body or ""):
        if handle not in seen:
            seen.append(handle)
    return seen
