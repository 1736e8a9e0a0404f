"""Document version strings.

Versions are ``"major.minor"`` with non-negative integer components. Content
edits bump the minor component; the major component is never changed
automatically.
"""

import re
from typing import Tuple

from .errors import ValidationError


INITIAL_VERSION = "1.0"

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)$")


def parse_version(version: str) -> Tuple[int, int]:
    """
    Split a version string into its integer components.
    
    Raises:
        ValidationError: If the string is not of the form ``N.M``
    """
    match = _VERSION_RE.match(version or "")
    if not match:
        raise ValidationError(f"Malformed version string: {version!r}")
    return int(match.group(1)), int(match.group(2))


def bump_minor(version: str) -> str:
    """Return the next minor version, e.g. ``1.9`` -> ``1.10``."""
    major, minor = parse_version(version)
    return f"{major}.{minor + 1}"
