"""
gexpin_node/resolver.py
--------------------------------------------------
Resolve a GitHub repository to the version and hash it last published.

Repos publish `.gx/lastpubver` on master containing exactly two
whitespace-separated fields:

    <version> <hash>
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests

from .errors import InputError, ResolutionError

log = logging.getLogger(__name__)

GITHUB_PREFIX = "github.com/"
DEFAULT_LASTPUBVER_URL = "https://raw.githubusercontent.com/{path}/master/.gx/lastpubver"


def normalize_github_url(raw: str) -> str:
    """
    Strip the scheme and host from a submitted repo URL.

    'https://github.com/acme/widget' -> 'acme/widget'
    """
    url = (raw or "").replace("http://", "", 1)
    url = url.replace("https://", "", 1)
    if not url.startswith(GITHUB_PREFIX):
        raise InputError("not a github url!")
    return url[len(GITHUB_PREFIX):]


def parse_lastpubver(body: str) -> Tuple[str, str]:
    fields = body.split()
    if len(fields) != 2:
        raise ResolutionError("incorrectly formatted lastpubver in repo")
    return fields[0], fields[1]


class VersionResolver:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        url_template: str = DEFAULT_LASTPUBVER_URL,
        timeout: Optional[float] = 30.0,
    ) -> None:
        self.session = session or requests.Session()
        self.url_template = url_template
        self.timeout = timeout

    def url_for(self, path: str) -> str:
        return self.url_template.format(path=path)

    def resolve(self, path: str) -> Tuple[str, str]:
        """Return (version, hash) for `owner/repo`."""
        url = self.url_for(path)
        try:
            r = self.session.get(url, timeout=self.timeout)
            r.raise_for_status()
            body = r.text
        except requests.RequestException as e:
            log.warning("lastpubver fetch failed for %s: %s", path, e)
            raise ResolutionError(str(e)) from e

        version, cid = parse_lastpubver(body)
        log.info("Resolved %s -> %s (%s)", path, cid, version)
        return version, cid
