from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, Iterable

# Skills and availability labels are compared on a normalized key so that
# "Node.js", "node.js" and "NODE.JS " are the same skill. Display strings keep
# the spelling they arrived with.


def normalize_label(text: Any) -> str:
    """
    Deterministic comparison key:
    - NFKC (smart quotes, full-width chars)
    - unicode dashes -> '-'
    - collapsed whitespace, casefolded
    """
    if not isinstance(text, str) or not text:
        return ""
    t = unicodedata.normalize("NFKC", text)
    t = re.sub("[\u2010-\u2015]", "-", t)
    return " ".join(t.split()).casefold()


def label_index(values: Iterable[Any]) -> Dict[str, str]:
    """
    Map normalized key -> first-seen display string (sorted input order, so the
    chosen display string is stable across runs).
    """
    out: Dict[str, str] = {}
    if values is None or isinstance(values, str):
        return out
    try:
        items = sorted(v for v in values if isinstance(v, str))
    except TypeError:
        return out
    for v in items:
        key = normalize_label(v)
        if key and key not in out:
            out[key] = v
    return out
