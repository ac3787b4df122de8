"""Blocking HTTP fetch used by the asset resolvers.

Resolvers take any callable with the signature of `fetch` so tests (and
callers with their own transport) can inject one. The resolvers run it in a
worker thread, so it may block.
"""

import os
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

DEFAULT_TIMEOUT = 30.0

USER_AGENT = 'paperflow (+https://pypi.org/project/paperflow/)'


@dataclass
class HttpResponse:
    status: int
    body: bytes = b''
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self, encoding: str = 'utf-8') -> str:
        return self.body.decode(encoding, errors='replace')


Fetcher = Callable[[str, Optional[Dict[str, str]]], HttpResponse]


def _timeout() -> float:
    raw = os.environ.get('PAPERFLOW_HTTP_TIMEOUT', '').strip()
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        return DEFAULT_TIMEOUT


def fetch(url: str, headers: Optional[Dict[str, str]] = None) -> HttpResponse:
    """GET `url`. HTTP error statuses are returned, not raised; transport
    failures (DNS, refused connection, timeout) raise OSError.
    """
    req_headers = {'User-Agent': USER_AGENT}
    req_headers.update(headers or {})
    req = urllib.request.Request(url, headers=req_headers)
    try:
        with urllib.request.urlopen(req, timeout=_timeout()) as response:
            return HttpResponse(
                status=response.status,
                body=response.read(),
                headers=dict(response.headers.items()),
            )
    except urllib.error.HTTPError as e:
        return HttpResponse(status=e.code, body=b'', headers=dict(e.headers.items()) if e.headers else {})
