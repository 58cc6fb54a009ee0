"""
Identifier codec.

Turns arbitrary domain identifiers (which may contain "/", "@", upper case
or non-ASCII characters) into strings that satisfy the naming grammar of
metadata objects and labels, and computes fixed-width digests used as
opaque label values.

Sanitization is lossy: "org/team" and "org-team" sanitize to the same
string. The exact value always travels beside it in an annotation (see
annotations.py) so nothing is lost on read.

hash_id keeps the first 8 bytes of a SHA-256 digest. Two distinct inputs
share a hash with probability around 2**-64 per pair; small but not zero,
so every hashed label predicate is re-checked in process against the
exact value.
"""
import hashlib
import re

LABEL_VALUE_MAX_LENGTH = 63
OBJECT_NAME_MAX_LENGTH = 253
HASH_BYTES = 8

_ILLEGAL_LABEL_CHARS = re.compile(r"[^a-z0-9\-_.]")
_ILLEGAL_NAME_CHARS = re.compile(r"[^a-z0-9\-]")
_DASH_RUNS = re.compile(r"-{2,}")
_SEPARATORS = "-_."
_LEGAL_LABEL_VALUE = re.compile(r"^[A-Za-z0-9]([A-Za-z0-9_.\-]{0,61}[A-Za-z0-9])?$")


def _sanitize(raw: str, max_len: int, illegal: re.Pattern) -> str:
    value = illegal.sub("-", raw.lower())
    value = _DASH_RUNS.sub("-", value)
    value = value.strip(_SEPARATORS)
    if max_len >= 0 and len(value) > max_len:
        value = value[:max_len].rstrip(_SEPARATORS)
    return value


def sanitize(raw: str, max_len: int = LABEL_VALUE_MAX_LENGTH) -> str:
    """
    Sanitize a raw identifier into a label-legal value.

    Lower-cases, replaces every character outside ``[a-z0-9-_.]`` with ``-``,
    collapses runs of ``-``, trims leading/trailing separators and truncates
    to ``max_len`` (re-trimming what truncation exposes).

    The result is empty only when the input holds no legal character at all.
    ``sanitize(sanitize(s)) == sanitize(s)`` for every ``s``.

    Args:
        raw: Identifier to sanitize
        max_len: Maximum length of the result

    Returns:
        Sanitized identifier
    """
    return _sanitize(raw, max_len, _ILLEGAL_LABEL_CHARS)


def sanitize_name(raw: str, max_len: int = OBJECT_NAME_MAX_LENGTH) -> str:
    """
    Sanitize a raw identifier for use inside a metadata object name.

    Same rules as sanitize() but only ``[a-z0-9-]`` survives, since object
    names may not contain underscores and dots would split DNS labels.
    """
    return _sanitize(raw, max_len, _ILLEGAL_NAME_CHARS)


def hash_id(raw: str) -> str:
    """
    Compute the fixed-width digest of a raw identifier.

    Args:
        raw: Identifier exactly as the caller supplied it

    Returns:
        16 lower-case hex characters (first 8 bytes of SHA-256)
    """
    return hashlib.sha256(raw.encode("utf-8")).digest()[:HASH_BYTES].hex()


def label_value(raw: str) -> str:
    """
    Return a label value that maps 1:1 onto ``raw``.

    Values that are already legal label values are used verbatim so they
    stay readable in the cluster; anything else is hashed. Either way the
    mapping is deterministic, which is what selector pushdown needs.
    """
    if _LEGAL_LABEL_VALUE.match(raw):
        return raw
    return hash_id(raw)


def object_name(prefix: str, raw_id: str) -> str:
    """
    Build a metadata object name from a type prefix and a raw identifier.

    Falls back to the identifier's hash when nothing of it survives
    sanitization (e.g. an all-CJK user name).

    Args:
        prefix: Type prefix ending with "-" (e.g. "agentapi-memory-")
        raw_id: Entity ID or natural key

    Returns:
        Object name no longer than 253 characters
    """
    suffix = sanitize_name(raw_id, OBJECT_NAME_MAX_LENGTH - len(prefix))
    if not suffix:
        suffix = hash_id(raw_id)
    return prefix + suffix
