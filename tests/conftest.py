import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from billsnap.license import LicenseManager
from billsnap.license.storage import JsonFileStore, MemoryStore

# BILLSNAP-AB12-CD34-EF56 with its checksum group
VALID_KEY = "BILLSNAP-AB12-CD34-EF56-0DXY"

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def store():
    return MemoryStore()


@pytest.fixture()
def file_store(tmp_path):
    return JsonFileStore(tmp_path / "billsnap_license.json")


@pytest.fixture()
def manager(store):
    return LicenseManager(store, clock=lambda: FIXED_NOW)


class ReadOnlyStore(MemoryStore):
    """Memory store whose writes fail like a read-only license file."""

    def save(self, state):
        raise PermissionError("license file is read-only")
