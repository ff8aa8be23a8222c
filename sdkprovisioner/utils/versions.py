from packaging.version import InvalidVersion, Version


def version_key(version):
    """Sort key for version strings.

    PEP 440 versions compare semantically; anything else (``nightly``)
    sorts below them, lexically among themselves.
    """
    try:
        return (1, Version(version), "")
    except InvalidVersion:
        return (0, Version("0"), version)


def latest(versions):
    return max(versions, key=version_key, default=None)


def is_coarse(version):
    """A hint such as ``2`` or ``2.1`` that names a release line, not a release."""
    return len(version.split(".")) < 3


def matches_hint(version, hint):
    hint_parts = hint.split(".")
    return version.split(".")[:len(hint_parts)] == hint_parts
