from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional
from urllib.parse import urlsplit, urlunsplit


# Documents moved from oip.nypdonline.org to nypdonline.org; both hosts still serve them.
DEFAULT_HOST_ALIASES: Dict[str, str] = {
    "oip.nypdonline.org": "nypdonline.org",
}


def canonicalize_url(url: str, host_aliases: Optional[Mapping[str, str]] = None) -> str:
    """Return the comparable form of ``url``.

    Literal spaces are percent-encoded and hosts listed in ``host_aliases`` are
    folded into their canonical host. Anything else is returned untouched.
    """
    out = url.strip().replace(" ", "%20")
    aliases = DEFAULT_HOST_ALIASES if host_aliases is None else host_aliases
    if not aliases:
        return out
    try:
        parts = urlsplit(out)
        port = parts.port
    except ValueError:
        # malformed netloc; nothing to fold
        return out
    host = (parts.hostname or "").lower()
    target = aliases.get(host)
    if not target:
        return out
    netloc = target
    if port:
        netloc = f"{target}:{port}"
    if parts.username:
        creds = parts.username + (f":{parts.password}" if parts.password else "")
        netloc = f"{creds}@{netloc}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


@dataclass(frozen=True)
class UrlCanonicalizer:
    host_aliases: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HOST_ALIASES))

    def __call__(self, url: str) -> str:
        return canonicalize_url(url, self.host_aliases)

    def many(self, urls: Iterable[str]) -> List[str]:
        return [self(u) for u in urls]
