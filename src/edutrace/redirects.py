"""Post-login redirect sanitizing."""

import re
from typing import Any
from urllib.parse import SplitResult, urljoin, urlsplit

DEFAULT_REDIRECT_PATH = "/dashboard"

SAFE_PATH_PATTERN = re.compile(r"^/[\w\-/]*$")

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin_of(url: SplitResult) -> str:
    scheme = url.scheme.lower()
    host = (url.hostname or "").lower()
    port = url.port
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def validate_redirect_path(
    path: Any, origin: str, default: str = DEFAULT_REDIRECT_PATH
) -> str:
    """Return a same-origin, path-only redirect target.

    Anything that could leave ``origin`` collapses to ``default``. Query
    strings and fragments are dropped from accepted paths.
    """
    if not path or not isinstance(path, str):
        return default
    if not path.startswith("/"):
        return default
    if path.startswith("//"):
        return default
    if "://" in path:
        return default
    # Browsers read "\" as "/" in http(s) URLs, so "/\evil.com" is protocol-relative
    if path.replace("\\", "/").startswith("//"):
        return default

    try:
        resolved = urlsplit(urljoin(origin, path))
        resolved_origin = _origin_of(resolved)
        app_origin = _origin_of(urlsplit(origin))
    except ValueError:
        if not SAFE_PATH_PATTERN.match(path):
            return default
        return path

    if not resolved.scheme or not resolved.hostname:
        return path if SAFE_PATH_PATTERN.match(path) else default
    if resolved_origin != app_origin:
        return default
    return resolved.path or "/"
