"""
Tests for the storage backends

Google Sheets is exercised through a fake worksheet; no API calls are made.
"""

import pytest

from finance_ai.services.storage import (
    GoogleSheetsBackend,
    InMemoryBackend,
    JsonFileBackend,
    StorageError,
    StorageFullError,
)
from finance_ai.services.storage.google_sheets import MAX_CELL_CHARS, STORAGE_COLUMNS


class FakeWorksheet:
    """Just enough of gspread.Worksheet for the storage backend."""

    def __init__(self):
        self.rows = [list(STORAGE_COLUMNS)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option=None):
        self.rows.append([str(v) for v in values])

    def update_cell(self, row, col, value):
        self.rows[row - 1][col - 1] = value

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self, sheet=None):
        self.sheet = sheet or FakeWorksheet()

    def get_storage_sheet(self):
        return self.sheet


class FailingWorksheet(FakeWorksheet):
    def get_all_values(self):
        raise RuntimeError("network down")


class TestInMemoryBackend:
    """Tests for the dict-backed backend."""

    def test_set_get_delete(self):
        """Test the basic slot lifecycle."""
        backend = InMemoryBackend()
        assert backend.get("a") is None
        backend.set("a", b"1")
        assert backend.get("a") == b"1"
        backend.delete("a")
        assert backend.get("a") is None

    def test_delete_missing_is_noop(self):
        """Test deleting a slot that was never written."""
        InMemoryBackend().delete("missing")

    def test_quota_exceeded(self):
        """Test that writes beyond the quota raise StorageFullError."""
        backend = InMemoryBackend(quota_bytes=10)
        backend.set("a", b"12345")
        with pytest.raises(StorageFullError):
            backend.set("b", b"123456")
        assert backend.get("b") is None

    def test_quota_counts_overwrite_once(self):
        """Test that overwriting a slot does not count its old value."""
        backend = InMemoryBackend(quota_bytes=10)
        backend.set("a", b"1234567890")
        backend.set("a", b"0987654321")
        assert backend.get("a") == b"0987654321"

    def test_storage_full_is_storage_error(self):
        """Test the error hierarchy."""
        assert issubclass(StorageFullError, StorageError)


class TestJsonFileBackend:
    """Tests for the file backend."""

    def test_round_trip(self, tmp_path):
        """Test that a written slot reads back and lands in <key>.json."""
        backend = JsonFileBackend(tmp_path / "data")
        backend.set("financeAI_data", b'{"transactions": []}')
        assert backend.get("financeAI_data") == b'{"transactions": []}'
        assert (tmp_path / "data" / "financeAI_data.json").exists()

    def test_missing_slot(self, tmp_path):
        """Test that an unwritten slot reads as None."""
        assert JsonFileBackend(tmp_path).get("nothing") is None

    def test_overwrite_leaves_no_temp_files(self, tmp_path):
        """Test that replacing a slot cleans up after itself."""
        backend = JsonFileBackend(tmp_path)
        backend.set("slot", b"one")
        backend.set("slot", b"two")
        assert backend.get("slot") == b"two"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["slot.json"]

    def test_delete(self, tmp_path):
        """Test deleting present and absent slots."""
        backend = JsonFileBackend(tmp_path)
        backend.set("slot", b"x")
        backend.delete("slot")
        backend.delete("slot")
        assert backend.get("slot") is None

    @pytest.mark.parametrize("key", ["", "../escape", "a/b", ".hidden"])
    def test_invalid_slot_names(self, tmp_path, key):
        """Test that slot names can not leave the data directory."""
        with pytest.raises(StorageError):
            JsonFileBackend(tmp_path).get(key)


class TestGoogleSheetsBackend:
    """Tests for the Sheets backend against a fake worksheet."""

    def test_round_trip(self):
        """Test writing and reading a slot."""
        client = FakeSheetsClient()
        backend = GoogleSheetsBackend(client=client)

        backend.set("financeAI_data", b'{"a": 1}')

        assert backend.get("financeAI_data") == b'{"a": 1}'
        assert client.sheet.rows[1][0] == "financeAI_data"

    def test_overwrite_updates_row(self):
        """Test that an existing slot is updated in place."""
        client = FakeSheetsClient()
        backend = GoogleSheetsBackend(client=client)

        backend.set("slot", b"one")
        backend.set("slot", b"two")

        assert backend.get("slot") == b"two"
        assert len(client.sheet.rows) == 2

    def test_missing_slot(self):
        """Test that an absent key reads as None."""
        assert GoogleSheetsBackend(client=FakeSheetsClient()).get("nothing") is None

    def test_header_row_is_not_a_slot(self):
        """Test that the header can not be read as a slot."""
        assert GoogleSheetsBackend(client=FakeSheetsClient()).get("key") is None

    def test_delete_removes_row(self):
        """Test deleting a slot."""
        client = FakeSheetsClient()
        backend = GoogleSheetsBackend(client=client)
        backend.set("a", b"1")
        backend.set("b", b"2")

        backend.delete("a")
        backend.delete("a")

        assert backend.get("a") is None
        assert backend.get("b") == b"2"

    def test_cell_limit(self):
        """Test that values beyond one cell raise StorageFullError."""
        backend = GoogleSheetsBackend(client=FakeSheetsClient())
        with pytest.raises(StorageFullError):
            backend.set("slot", b"x" * (MAX_CELL_CHARS + 1))

    def test_non_utf8_rejected(self):
        """Test that binary values are refused."""
        backend = GoogleSheetsBackend(client=FakeSheetsClient())
        with pytest.raises(StorageError):
            backend.set("slot", b"\xff\xfe")

    def test_api_failure_becomes_storage_error(self):
        """Test that unexpected client errors are wrapped."""
        backend = GoogleSheetsBackend(client=FakeSheetsClient(FailingWorksheet()))
        with pytest.raises(StorageError):
            backend.get("slot")
        with pytest.raises(StorageError):
            backend.set("slot", b"1")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
