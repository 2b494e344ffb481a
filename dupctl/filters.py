"""Translate user paths into restore filter expressions.

Filters are root-relative: "+etc/hosts" includes one file, "+var/log/*"
includes a directory recursively. Anything that already looks like a filter
is passed through untouched.

Whether a path is a file or a directory is decided by probing the local
filesystem (then GUESS_ROOT). That is a best-effort heuristic: the tree may
change between the probe and the restore.
"""

import os

FILTER_PREFIXES = ("-", "+", "i:", "e:")

SEPARATORS = "/" if os.sep == "/" else "/" + os.sep


def is_filter(item):
    return item.startswith(FILTER_PREFIXES)


def _include_dir(path):
    relative = path.strip(SEPARATORS)
    return f"+{relative}/*" if relative else "+*"


def _include_file(path):
    return "+" + path.lstrip(SEPARATORS)


def translate(item, guess_root="/"):
    """Translate one path or filter expression. Never raises."""
    if is_filter(item):
        return item

    if item[-1:] and item[-1] in SEPARATORS:
        return _include_dir(item)

    if os.path.lexists(item):
        resolved = os.path.realpath(item)
        if os.path.isdir(resolved):
            return _include_dir(resolved)
        if os.path.isfile(resolved):
            return _include_file(resolved)

    guess = os.path.join(guess_root, item.lstrip(SEPARATORS))
    if os.path.isdir(guess):
        return _include_dir(item)
    if os.path.isfile(guess):
        return _include_file(item)

    return _include_file(item)


def translate_all(items, guess_root="/"):
    return [translate(item, guess_root) for item in items]
