"""License state records and the read-only projections built from them."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class LicenseType(str, Enum):
    TRIAL = "trial"
    LICENSED = "licensed"
    UNLICENSED = "unlicensed"


def as_text(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


# JSON field name -> attribute name
_FIELDS = {
    "type": "type",
    "invoicesCreated": "invoices_created",
    "key": "key",
    "activatedAt": "activated_at",
    "customerEmail": "customer_email",
    "customerName": "customer_name",
    "productName": "product_name",
    "validUntil": "valid_until",
}


@dataclass
class LicenseState:
    """Persisted license record.

    Serialized with the camelCase field names used by the stored record so
    an existing ``billsnap_license`` file keeps loading.
    """

    type: LicenseType = LicenseType.TRIAL
    invoices_created: int = 0
    key: Optional[str] = None
    activated_at: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    product_name: Optional[str] = None
    valid_until: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {}
        for json_name, attr in _FIELDS.items():
            value = getattr(self, attr)
            if isinstance(value, LicenseType):
                value = value.value
            payload[json_name] = value
        return payload

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "LicenseState":
        """Build a state from a stored record, raising ``ValueError`` if malformed."""
        if not isinstance(payload, dict):
            raise ValueError("License record must be an object")
        state = cls(type=LicenseType(payload.get("type", LicenseType.TRIAL.value)))
        count = payload.get("invoicesCreated") or 0
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Invalid invoice count: {count!r}")
        state.invoices_created = count
        for json_name, attr in _FIELDS.items():
            if json_name in ("type", "invoicesCreated"):
                continue
            value = payload.get(json_name)
            setattr(state, attr, as_text(value))
        return state


@dataclass
class LicenseStatus:
    type: LicenseType
    is_licensed: bool
    can_create: bool
    remaining: float
    invoices_created: int
    trial_limit: int
    key: Optional[str] = None
    activated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "isLicensed": self.is_licensed,
            "canCreate": self.can_create,
            # JSON has no infinity
            "remaining": None if math.isinf(self.remaining) else int(self.remaining),
            "invoicesCreated": self.invoices_created,
            "trialLimit": self.trial_limit,
            "key": self.key,
            "activatedAt": self.activated_at,
        }


@dataclass
class LicenseInfo:
    is_licensed: bool
    key: Optional[str] = None
    customer_email: Optional[str] = None
    customer_name: Optional[str] = None
    product_name: Optional[str] = None
    activated_at: Optional[str] = None
    valid_until: Optional[str] = None
    expired: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isLicensed": self.is_licensed,
            "key": self.key,
            "customerEmail": self.customer_email,
            "customerName": self.customer_name,
            "productName": self.product_name,
            "activatedAt": self.activated_at,
            "validUntil": self.valid_until,
            "expired": self.expired,
        }


@dataclass
class ActivationResult:
    success: bool
    message: str
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload = {"success": self.success, "message": self.message}
        if self.error:
            payload["error"] = self.error
        return payload
