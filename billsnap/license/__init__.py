"""Licensing utilities for the BillSnap invoice generator."""

from .manager import LicenseManager, TRIAL_LIMIT
from .remote import RemoteLicenseManager
from .state import ActivationResult, LicenseInfo, LicenseState, LicenseStatus, LicenseType
from . import storage, verification

__all__ = [
    "ActivationResult",
    "LicenseInfo",
    "LicenseManager",
    "LicenseState",
    "LicenseStatus",
    "LicenseType",
    "RemoteLicenseManager",
    "TRIAL_LIMIT",
    "storage",
    "verification",
]
