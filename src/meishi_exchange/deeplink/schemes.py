"""Custom URL scheme and universal link helpers."""

from typing import Dict, Optional
from urllib.parse import urlencode, urlsplit

DEFAULT_SCHEME = "airmeishi"
DEFAULT_HOST = "share"


def create_scheme_url(
    path: str,
    parameters: Optional[Dict[str, str]] = None,
    scheme: str = DEFAULT_SCHEME,
    host: str = DEFAULT_HOST,
) -> str:
    """Build an intra-app URL such as ``airmeishi://share/contacts?tab=recent``."""
    if path and not path.startswith("/"):
        path = f"/{path}"
    url = f"{scheme}://{host}{path}"
    if parameters:
        url = f"{url}?{urlencode(sorted(parameters.items()))}"
    return url


def is_valid_universal_link(url: str, domain: str, base_path: str = "/share") -> bool:
    """True when ``url`` points at ``domain`` under ``base_path``."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return parts.hostname == domain and parts.path.startswith(base_path)
