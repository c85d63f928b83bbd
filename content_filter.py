# content_filter.py
import unicodedata
from typing import List, Optional

import confusable_homoglyphs.categories as categories_lib
import confusable_homoglyphs.confusables as confusables_lib
from pydantic import BaseModel

# ---------------------------
# Term lists (order matters: protected is checked first)
# ---------------------------
PROTECTED_TERMS: List[str] = [
    "race", "religion", "ethnicity", "gay", "lesbian", "trans", "black", "white",
    "jew", "muslim", "christian", "disabled", "disability", "immigrant", "refugee",
]
VIOLENT_TERMS: List[str] = ["kill", "murder", "rape", "harm", "bomb", "explode", "die"]

REASON_PROTECTED = "protected"
REASON_VIOLENT = "violent"


class FilterResult(BaseModel):
    blocked: bool
    reason: Optional[str] = None


# ---------------------------
# Optional homoglyph folding
# ---------------------------
def fold_confusables(s: str) -> str:
    """
    Replace characters that merely look like Latin letters (Cyrillic, Greek,
    small caps...) with their Latin counterpart, then NFKC-normalize.
    """
    found = confusables_lib.is_confusable(s, greedy=True, preferred_aliases=["latin"])
    out = s
    if found:
        mapping = {}
        for item in found:
            ch = item.get("character")
            for homo in item.get("homoglyphs") or []:
                c = homo.get("c")
                if c and len(c) == 1 and c.isascii() and categories_lib.alias(c) == "LATIN":
                    mapping[ch] = c
                    break
        out = "".join(mapping.get(ch, ch) for ch in s)
    return unicodedata.normalize("NFKC", out)


# ---------------------------
# Check
# ---------------------------
def check_text(text: Optional[str], normalize_homoglyphs: bool = False) -> FilterResult:
    """
    Literal, case-insensitive substring match against the term lists.
    No word boundaries: "diet" is blocked because it contains "die".
    """
    t = text or ""
    if normalize_homoglyphs:
        t = fold_confusables(t)
    t = t.lower()
    for term in PROTECTED_TERMS:
        if term in t:
            return FilterResult(blocked=True, reason=REASON_PROTECTED)
    for term in VIOLENT_TERMS:
        if term in t:
            return FilterResult(blocked=True, reason=REASON_VIOLENT)
    return FilterResult(blocked=False)
