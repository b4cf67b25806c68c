"""Signal K path helpers.

Signal K paths are written in dot notation (``navigation.speedOverGround``)
but addressed over REST with slashes.  All helpers are pure.
"""
from __future__ import annotations

NOTIFICATIONS_PREFIX: str = "notifications."


def dot_to_slash(path: str) -> str:
    """Convert a dotted path to a slash path, leaving any query string intact.

    >>> dot_to_slash("a.b.c?x=1.5")
    'a/b/c?x=1.5'
    """
    head, sep, query = path.partition("?")
    return head.replace(".", "/") + sep + query


def normalize_context(context: str) -> str:
    """Expand the ``self`` shorthand to ``vessels.self``."""
    return "vessels.self" if context == "self" else context


def context_to_path(context: str) -> str:
    """Convert a context to its REST path (``self`` -> ``vessels/self``)."""
    return normalize_context(context).replace(".", "/")


def strip_leading_slash(path: str) -> str:
    return path[1:] if path.startswith("/") else path


def notification_path(name: str) -> str:
    """Return the ``notifications.<name>`` path for an alarm name or type."""
    name = str(name)
    if NOTIFICATIONS_PREFIX in name:
        return name
    return f"{NOTIFICATIONS_PREFIX}{name}"


def append_query(url: str, key: str, value: object) -> str:
    """Append ``key=value`` to *url* with the right separator.

    Values are appended verbatim; Signal K tokens and ISO times are
    already URL safe.
    """
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{key}={value}"


def replace_segment(url: str, old: str, new: str) -> str:
    """Replace the last ``/<old>`` path segment of *url* with ``/<new>``."""
    head, sep, tail = url.rpartition(f"/{old}")
    if not sep:
        return url
    return f"{head}/{new}{tail}"
