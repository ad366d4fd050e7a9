"""License activation and trial gating for BillSnap."""

from __future__ import annotations

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Callable

from . import verification
from .state import ActivationResult, LicenseState, LicenseStatus, LicenseType
from .storage import LicenseStore

logger = logging.getLogger(__name__)

TRIAL_LIMIT = 10

MSG_ACTIVATED = "License activated successfully!"
MSG_EMPTY_KEY = "Please enter a license key"
MSG_INVALID_FORMAT = "Invalid license key format"
MSG_SAVE_FAILED = "Could not save the license. Please check that the license file is writable."


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LicenseManager:
    """Offline license manager.

    With a positive ``trial_limit`` the manager starts in trial mode and allows
    that many invoices before a key is required. With ``trial_limit=0`` it acts
    as a hard gate: nothing can be created until a license is activated.
    """

    def __init__(
        self,
        store: LicenseStore,
        *,
        trial_limit: int = TRIAL_LIMIT,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if trial_limit < 0:
            raise ValueError("trial_limit must not be negative")
        self.store = store
        self.trial_limit = trial_limit
        self._clock = clock
        self.state = self._load_state()

    def _default_state(self) -> LicenseState:
        initial = LicenseType.TRIAL if self.trial_limit else LicenseType.UNLICENSED
        return LicenseState(type=initial)

    def _load_state(self) -> LicenseState:
        state = self.store.load()
        if state is None:
            state = self._default_state()
            try:
                self.store.save(state)
            except OSError as exc:
                logger.warning("Could not write new license record: %s", exc)
            else:
                logger.info("Created new %s license record", state.type.value)
        return state

    def _commit(self, state: LicenseState) -> None:
        """Persist ``state`` and only then make it current."""
        self.store.save(state)
        self.state = state

    # -- validation --------------------------------------------------------

    def validate_key(self, key: object) -> bool:
        return verification.validate_key(key)

    def generate_sample_key(self) -> str:
        return verification.generate_sample_key()

    def activate_license(self, key: str) -> ActivationResult:
        candidate = verification.normalize_key(key or "")
        if not candidate:
            return ActivationResult(False, MSG_EMPTY_KEY, error="empty_key")
        ok, reason = verification.check_key_format(candidate)
        if not ok:
            logger.debug("Rejected license key: %s", reason)
            return ActivationResult(False, MSG_INVALID_FORMAT, error="invalid_format")
        return self._activate(self._licensed_state(candidate))

    def _licensed_state(self, key: str, **fields) -> LicenseState:
        return replace(
            self.state,
            type=LicenseType.LICENSED,
            key=key,
            activated_at=self._clock().isoformat(),
            **fields,
        )

    def _activate(self, state: LicenseState) -> ActivationResult:
        try:
            self._commit(state)
        except OSError as exc:
            logger.error("Could not save license record: %s", exc)
            return ActivationResult(False, MSG_SAVE_FAILED, error="storage_error")
        return ActivationResult(True, MSG_ACTIVATED)

    # -- gating ------------------------------------------------------------

    def is_licensed(self) -> bool:
        return self.state.type is LicenseType.LICENSED and bool(self.state.key)

    def can_create_invoice(self) -> bool:
        if self.is_licensed():
            return True
        return self.state.invoices_created < self.trial_limit

    def increment_invoice_count(self) -> None:
        if self.is_licensed():
            return
        self._commit(replace(self.state, invoices_created=self.state.invoices_created + 1))

    def record_invoice(self) -> bool:
        """Count one invoice if allowed; return False when the gate blocks it."""
        if not self.can_create_invoice():
            return False
        self.increment_invoice_count()
        return True

    def get_remaining_trial_invoices(self) -> float:
        if self.is_licensed():
            return math.inf
        return max(0, self.trial_limit - self.state.invoices_created)

    def get_status(self) -> LicenseStatus:
        return LicenseStatus(
            type=self.state.type,
            is_licensed=self.is_licensed(),
            can_create=self.can_create_invoice(),
            remaining=self.get_remaining_trial_invoices(),
            invoices_created=self.state.invoices_created,
            trial_limit=self.trial_limit,
            key=self.state.key,
            activated_at=self.state.activated_at,
        )
