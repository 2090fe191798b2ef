import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional

import httpx

from fleet_admin.core.config import settings

logger = logging.getLogger(__name__)


class RemoteSync:
    """
    Write-through adapter from the local store to the REST backend.

    Every call is best-effort: it is dispatched in the background, failures
    are logged and dropped, and nothing is retried or rolled back. The local
    store stays the record of truth whatever the backend answers.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.Client] = None,
        executor: Optional[Executor] = None,
        background: bool = True,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.API_BASE_URL).rstrip("/")
        self.client = client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout or settings.SYNC_TIMEOUT_SECONDS,
        )
        self.background = background
        self._executor = executor
        if background and executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="fleet-sync")

    def create(self, resource: str, payload: dict) -> Optional[Future]:
        return self._dispatch("POST", f"/api/{resource}", payload)

    def update(self, resource: str, item_id: str, payload: dict) -> Optional[Future]:
        return self._dispatch("PUT", f"/api/{resource}/{item_id}", payload)

    def delete(self, resource: str, item_id: str) -> Optional[Future]:
        return self._dispatch("DELETE", f"/api/{resource}/{item_id}", None)

    def _dispatch(self, method: str, path: str, payload: Optional[dict]) -> Optional[Future]:
        if not self.background:
            self._send(method, path, payload)
            return None
        try:
            return self._executor.submit(self._send, method, path, payload)
        except RuntimeError as exc:
            # executor already shut down
            logger.warning("Dropping %s %s: %s", method, path, exc)
            return None

    def _send(self, method: str, path: str, payload: Optional[dict]) -> bool:
        try:
            response = self.client.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Backend sync %s %s failed: %s", method, path, exc)
            return False
        logger.debug("Backend sync %s %s -> %s", method, path, response.status_code)
        return True

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
        self.client.close()
