"""
BillSnap license manager tests: activation, trial gating, status.
"""

import json
import math

import pytest

from billsnap.license import LicenseManager, LicenseState, LicenseType
from billsnap.license.storage import MemoryStore

from conftest import FIXED_NOW, VALID_KEY, ReadOnlyStore


# ---------------------------------------------------------------------------
# First run
# ---------------------------------------------------------------------------

class TestFirstRun:
    def test_trial_defaults_are_persisted(self, store):
        manager = LicenseManager(store)
        assert manager.state.type is LicenseType.TRIAL
        assert manager.state.invoices_created == 0
        assert manager.state.key is None
        assert store.load() == manager.state

    def test_gate_starts_unlicensed(self, store):
        manager = LicenseManager(store, trial_limit=0)
        assert manager.state.type is LicenseType.UNLICENSED
        assert manager.can_create_invoice() is False
        assert manager.get_remaining_trial_invoices() == 0

    def test_existing_record_is_loaded(self):
        store = MemoryStore(LicenseState(invoices_created=4))
        manager = LicenseManager(store)
        assert manager.get_remaining_trial_invoices() == 6
        assert store.saves == 0

    def test_negative_trial_limit_rejected(self, store):
        with pytest.raises(ValueError):
            LicenseManager(store, trial_limit=-1)


# ---------------------------------------------------------------------------
# Activation
# ---------------------------------------------------------------------------

class TestActivation:
    def test_valid_key_activates(self, manager, store):
        result = manager.activate_license(VALID_KEY)
        assert result.success is True
        assert result.message == "License activated successfully!"
        assert manager.is_licensed() is True
        assert manager.state.activated_at == FIXED_NOW.isoformat()
        assert store.load().type is LicenseType.LICENSED
        assert store.load().key == VALID_KEY

    def test_key_is_normalized_before_storing(self, manager):
        result = manager.activate_license(f"  {VALID_KEY.lower()}  ")
        assert result.success is True
        assert manager.state.key == VALID_KEY

    def test_invalid_key_leaves_state_unchanged(self, manager, store):
        before = store.load()
        result = manager.activate_license("BILLSNAP-AB12-CD34-EF56-0000")
        assert result.success is False
        assert result.error == "invalid_format"
        assert result.message == "Invalid license key format"
        assert manager.is_licensed() is False
        assert store.load() == before

    @pytest.mark.parametrize("key", ["", "   ", None])
    def test_empty_key(self, manager, key):
        result = manager.activate_license(key)
        assert result.success is False
        assert result.error == "empty_key"

    def test_activation_after_trial_exhausted(self, manager):
        for _ in range(manager.trial_limit):
            manager.increment_invoice_count()
        assert manager.can_create_invoice() is False

        assert manager.activate_license(VALID_KEY).success is True
        assert manager.is_licensed() is True
        assert manager.can_create_invoice() is True

    def test_licensed_requires_key(self):
        store = MemoryStore(LicenseState(type=LicenseType.LICENSED, key=None))
        manager = LicenseManager(store)
        assert manager.is_licensed() is False

    def test_manager_helpers_delegate(self, manager):
        assert manager.validate_key(VALID_KEY) is True
        assert manager.validate_key(manager.generate_sample_key()) is True


# ---------------------------------------------------------------------------
# Trial gating
# ---------------------------------------------------------------------------

class TestTrialGating:
    def test_ten_invoices_exhaust_trial(self, manager):
        for _ in range(10):
            assert manager.can_create_invoice() is True
            manager.increment_invoice_count()
        assert manager.get_remaining_trial_invoices() == 0
        assert manager.can_create_invoice() is False

    def test_remaining_floors_at_zero(self, manager):
        for _ in range(11):
            manager.increment_invoice_count()
        assert manager.state.invoices_created == 11
        assert manager.get_remaining_trial_invoices() == 0

    def test_counter_frozen_once_licensed(self, manager, store):
        manager.increment_invoice_count()
        manager.activate_license(VALID_KEY)
        saves = store.saves
        manager.increment_invoice_count()
        assert manager.state.invoices_created == 1
        assert store.saves == saves
        assert manager.get_remaining_trial_invoices() == math.inf

    def test_increment_persists(self, manager, store):
        manager.increment_invoice_count()
        manager.increment_invoice_count()
        assert store.load().invoices_created == 2

    def test_record_invoice_blocks_at_limit(self, store):
        manager = LicenseManager(store, trial_limit=2)
        assert manager.record_invoice() is True
        assert manager.record_invoice() is True
        assert manager.record_invoice() is False
        assert manager.state.invoices_created == 2

    def test_custom_trial_limit(self, store):
        manager = LicenseManager(store, trial_limit=3)
        assert manager.get_remaining_trial_invoices() == 3


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

class TestStatus:
    def test_trial_status(self, manager):
        manager.increment_invoice_count()
        status = manager.get_status()
        assert status.type is LicenseType.TRIAL
        assert status.is_licensed is False
        assert status.can_create is True
        assert status.remaining == 9
        assert status.invoices_created == 1
        assert status.trial_limit == 10

    def test_status_has_no_side_effects(self, manager, store):
        saves = store.saves
        manager.get_status()
        manager.get_status()
        assert store.saves == saves

    def test_licensed_status_serializes(self, manager):
        manager.activate_license(VALID_KEY)
        payload = manager.get_status().to_dict()
        assert payload["isLicensed"] is True
        assert payload["remaining"] is None
        assert payload["key"] == VALID_KEY
        json.dumps(payload)


# ---------------------------------------------------------------------------
# Unwritable storage
# ---------------------------------------------------------------------------

class TestUnwritableStore:
    def test_first_run_keeps_defaults_in_memory(self):
        manager = LicenseManager(ReadOnlyStore())
        assert manager.state.type is LicenseType.TRIAL
        assert manager.get_status().remaining == 10

    def test_failed_save_leaves_activation_undone(self):
        store = ReadOnlyStore(LicenseState(invoices_created=3))
        manager = LicenseManager(store, clock=lambda: FIXED_NOW)
        result = manager.activate_license(VALID_KEY)
        assert result.success is False
        assert result.error == "storage_error"
        assert manager.is_licensed() is False
        assert manager.state == LicenseState(invoices_created=3)

    def test_failed_save_leaves_count_unchanged(self):
        manager = LicenseManager(ReadOnlyStore(LicenseState(invoices_created=3)))
        with pytest.raises(OSError):
            manager.increment_invoice_count()
        assert manager.state.invoices_created == 3
