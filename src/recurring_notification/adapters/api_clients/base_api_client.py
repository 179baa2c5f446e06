from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import requests
import structlog
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


class BaseAPIClient:
    """
    Utilitário HTTP (POST JSON) com:
      • retry exponencial só para 5xx e métodos idempotentes do urllib3
      • timeout configurável
      • resposta crua devolvida ao chamador (que decide o que é falha)
    """

    def __init__(
        self,
        *,
        base_url: str,
        default_headers: dict[str, str] | None = None,
        timeout: float = 10.0,
        retries: int = 2,
    ) -> None:
        self.log = structlog.get_logger(__name__).bind(component=type(self).__name__)
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout

        # sessão + retry -----------------------------------------------------------------
        self.session = requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})
        if default_headers:
            self.session.headers.update(default_headers)

        retry_cfg = Retry(
            total=retries,
            backoff_factor=0.3,
            status_forcelist=[502, 503, 504],
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry_cfg)
        for scheme in ("https://", "http://"):
            self.session.mount(scheme, adapter)

    def _url(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    # ---------------------------------------------------------------------- HTTP POST -
    def _post(self, path: str, *, json: dict[str, Any], headers: dict[str, str] | None = None) -> requests.Response:
        url = self._url(path)
        self.log.debug("http.post", url=url)
        return self.session.post(url, json=json, headers=headers, timeout=self.timeout)
