"""License activation against a remote licensing endpoint."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

import requests

from .manager import MSG_EMPTY_KEY, LicenseManager
from .state import ActivationResult, LicenseInfo, LicenseType, as_text
from .storage import LicenseStore

logger = logging.getLogger(__name__)

DEFAULT_VALIDATE_URL = "https://api.lemonsqueezy.com/v1/licenses/validate"
DEFAULT_INSTANCE_NAME = "BillSnap"
DEFAULT_TIMEOUT = 10

MSG_INVALID_KEY = "Invalid license key. Please check and try again."
MSG_NETWORK_ERROR = (
    "Could not connect to the license server. Please check your internet connection."
)

ResultCallback = Callable[[ActivationResult], None]


def _parse_timestamp(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class RemoteLicenseManager(LicenseManager):
    """License manager that asks a licensing server whether a key is valid.

    The server's answer is cached in the local record; nothing re-checks it
    later except the expiry comparison in :meth:`is_licensed`.
    """

    def __init__(
        self,
        store: LicenseStore,
        *,
        url: str = DEFAULT_VALIDATE_URL,
        instance_name: str = DEFAULT_INSTANCE_NAME,
        timeout: float = DEFAULT_TIMEOUT,
        trial_limit: int = 0,
        **kwargs,
    ) -> None:
        self.url = url
        self.instance_name = instance_name
        self.timeout = timeout
        self._lock = threading.Lock()
        self._pending = 0
        super().__init__(store, trial_limit=trial_limit, **kwargs)

    @property
    def validating(self) -> bool:
        """True while any background activation is still in flight."""
        with self._lock:
            return self._pending > 0

    def _request_validation(self, key: str) -> dict:
        response = requests.post(
            self.url,
            json={"license_key": key, "instance_name": self.instance_name},
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError("Unexpected response from license server")
        return payload

    def activate_license(self, key: str) -> ActivationResult:
        # server-issued keys are case sensitive; send them as entered
        candidate = (key or "").strip()
        if not candidate:
            return ActivationResult(False, MSG_EMPTY_KEY, error="empty_key")

        try:
            payload = self._request_validation(candidate)
        except (requests.RequestException, ValueError) as exc:
            logger.warning("License validation request failed: %s", exc)
            return ActivationResult(False, MSG_NETWORK_ERROR, error="network_error")

        if not payload.get("valid"):
            logger.info("License server rejected key: %s", payload.get("error", "not valid"))
            return ActivationResult(False, MSG_INVALID_KEY, error="invalid_key")

        meta = payload.get("meta")
        if not isinstance(meta, dict):
            meta = {}
        license_key = payload.get("license_key")
        if not isinstance(license_key, dict):
            license_key = {}
        return self._activate(self._licensed_state(
            candidate,
            customer_email=as_text(meta.get("customer_email")),
            customer_name=as_text(meta.get("customer_name")),
            product_name=as_text(meta.get("product_name")),
            valid_until=as_text(license_key.get("expires_at")),
        ))

    def activate_license_async(
        self, key: str, callback: Optional[ResultCallback] = None
    ) -> threading.Thread:
        """Run :meth:`activate_license` on a background thread.

        Overlapping calls are not serialized; whichever finishes last wins.
        """

        def worker() -> None:
            try:
                result = self.activate_license(key)
            finally:
                with self._lock:
                    self._pending -= 1
            if callback:
                callback(result)

        with self._lock:
            self._pending += 1
        thread = threading.Thread(target=worker, daemon=True)
        thread.start()
        return thread

    def is_expired(self) -> bool:
        if not self.state.valid_until:
            return False
        try:
            expires = _parse_timestamp(self.state.valid_until)
        except (TypeError, ValueError):
            logger.warning("Ignoring unparsable license expiry: %s", self.state.valid_until)
            return False
        return self._clock() > expires

    def is_licensed(self) -> bool:
        return super().is_licensed() and not self.is_expired()

    def deactivate(self) -> None:
        self._commit(self._default_state())
        logger.info("License deactivated")

    def get_license_info(self) -> LicenseInfo:
        return LicenseInfo(
            is_licensed=self.is_licensed(),
            key=self.state.key,
            customer_email=self.state.customer_email,
            customer_name=self.state.customer_name,
            product_name=self.state.product_name,
            activated_at=self.state.activated_at,
            valid_until=self.state.valid_until,
            expired=self.state.type is LicenseType.LICENSED and self.is_expired(),
        )
