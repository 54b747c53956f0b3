"""Glob-style wildcard matching for mount point patterns.

Only ``*`` (any run of characters, including none) and ``?`` (exactly one
character) are special. Matching is case-insensitive and anchored at both
ends. There are no character classes and no escaping.
"""


def match(pattern: str, text: str) -> bool:
    """Match ``text`` against a wildcard ``pattern``.

    Uses a two-pointer scan that remembers the position of the last ``*``
    and backtracks to it on mismatch, so it runs without recursion.

    Args:
        pattern: Pattern containing literal characters, ``*`` and ``?``.
        text: String to test.

    Returns:
        True if the whole of ``text`` matches the whole of ``pattern``.

    Example:
        >>> match("/mnt/*", "/mnt/data")
        True
        >>> match("?ello", "ello")
        False
    """
    pattern = pattern.lower()
    text = text.lower()

    p = 0
    t = 0
    star = -1
    mark = 0

    while t < len(text):
        if p < len(pattern) and pattern[p] in ("?", text[t]):
            p += 1
            t += 1
        elif p < len(pattern) and pattern[p] == "*":
            star = p
            mark = t
            p += 1
        elif star != -1:
            p = star + 1
            mark += 1
            t = mark
        else:
            return False

    while p < len(pattern) and pattern[p] == "*":
        p += 1

    return p == len(pattern)


def match_any(text: str, patterns: frozenset[str] | set[str]) -> bool:
    """Check whether ``text`` matches at least one of ``patterns``."""
    return any(match(pattern, text) for pattern in patterns)
