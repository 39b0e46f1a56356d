from __future__ import annotations

from typing import Any, Dict

# Upper bound for every textual submission field. Values are cut to these
# lengths before any validation runs.
FIELD_LIMITS: Dict[str, int] = {
    "public_path": 120,
    "email": 120,
    "phone": 40,
    "name": 80,
    "service": 80,
    "utm_source": 120,
    "utm_campaign": 120,
    "hp": 200,
}

DEFAULT_LIMIT = 200

# Characters trimmed from both ends: the ECMAScript WhiteSpace and
# LineTerminator sets. Unlike str.isspace() this includes U+FEFF and
# excludes the C0 separators U+001C..U+001F and U+0085.
WHITESPACE = (
    "\t\n\v\f\r \u00a0\u1680"
    + "".join(chr(c) for c in range(0x2000, 0x200B))
    + "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def scrub_surrogates(value: str) -> str:
    """Replace lone surrogates, which no store can encode, with ``?``."""
    return value.encode("utf-8", "replace").decode("utf-8")


def normalize_text(value: Any, max_length: int = DEFAULT_LIMIT) -> str:
    """Coerce a raw JSON value into a trimmed, length-capped string.

    Anything that is not already a string (numbers, booleans, null, objects,
    arrays) becomes the empty string rather than its ``str()`` form.
    """
    if not isinstance(value, str):
        return ""
    return scrub_surrogates(value).strip(WHITESPACE)[:max_length]


def normalize_field(field: str, value: Any) -> str:
    return normalize_text(value, FIELD_LIMITS.get(field, DEFAULT_LIMIT))
