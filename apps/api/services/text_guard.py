"""
Validation and sanitization of untrusted free text.

sanitize() silently fixes benign problems (stray invisible characters,
whitespace, control bytes) on accepted fields. validate() reports content that
indicates abuse and is never used to clean it up.
"""
import re
import unicodedata
from collections import Counter
from typing import List

# Zero-width, joiner, bidi embedding/override/isolate and BOM code points
INVISIBLE_CHARS = (
    "\u061c"
    "\u180e"
    "\u200b\u200c\u200d\u200e\u200f"
    "\u202a\u202b\u202c\u202d\u202e"
    "\u2060\u2061\u2062\u2063\u2064"
    "\u2066\u2067\u2068\u2069"
    "\ufeff"
)

COMBINING_MARK_RATIO = 0.30
RTL_RATIO = 0.40
MAX_CHAR_RUN = 10
MAX_WORD_REPEATS = 20
MIN_COUNTED_WORD_LENGTH = 4

_INVISIBLE_RE = re.compile(f"[{INVISIBLE_CHARS}]")
_CONTROL_RE = re.compile("[\x00-\x1f\x7f-\x9f]")
_WHITESPACE_RE = re.compile(r"\s+")
_CHAR_RUN_RE = re.compile(r"(.)\1{%d,}" % MAX_CHAR_RUN, re.DOTALL)
_WORD_RE = re.compile(r"\w+")

# Ordinary line structure, not flagged as suspicious
_ALLOWED_CONTROLS = {"\t", "\n", "\r"}


def sanitize(text: str) -> str:
    if not text:
        return ""
    text = _INVISIBLE_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _is_private_use(ch: str) -> bool:
    return unicodedata.category(ch) == "Co"


def _is_control(ch: str) -> bool:
    return ch not in _ALLOWED_CONTROLS and _CONTROL_RE.match(ch) is not None


def has_invisible_chars(text: str) -> bool:
    return _INVISIBLE_RE.search(text) is not None


def combining_mark_ratio(text: str) -> float:
    if not text:
        return 0.0
    marks = sum(1 for ch in text if unicodedata.category(ch) in ("Mn", "Me"))
    return marks / len(text)


def rtl_ratio(text: str) -> float:
    if not text:
        return 0.0
    rtl = sum(1 for ch in text if unicodedata.bidirectional(ch) in ("R", "AL"))
    return rtl / len(text)


def is_spam(text: str) -> bool:
    if _CHAR_RUN_RE.search(text):
        return True
    words = Counter(
        word for word in _WORD_RE.findall(text.lower())
        if len(word) >= MIN_COUNTED_WORD_LENGTH
    )
    return any(count > MAX_WORD_REPEATS for count in words.values())


def has_suspicious_code_points(text: str) -> bool:
    return any(_is_private_use(ch) or _is_control(ch) for ch in text)


def validate(text: str, field: str = "Text") -> List[str]:
    """Run every check on the raw text and return all violation messages"""
    if not text:
        return []

    violations = []
    if has_invisible_chars(text):
        violations.append(f"{field} contains hidden or direction-override characters")
    if combining_mark_ratio(text) > COMBINING_MARK_RATIO:
        violations.append(f"{field} contains too many combining diacritical marks")
    if rtl_ratio(text) > RTL_RATIO:
        violations.append(f"{field} contains too many right-to-left characters")
    if is_spam(text):
        violations.append(f"{field} looks like spam (repeated characters or words)")
    if has_suspicious_code_points(text):
        violations.append(f"{field} contains control or private-use characters")
    return violations
