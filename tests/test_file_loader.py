"""
Tests for file_loader module
Tests reading the KPI CSV from uploads and from disk
"""

import pytest
import sys
import os
from io import BytesIO

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import file_loader
from file_loader import decode_csv_bytes, get_file_source, read_csv_text


class FakeSessionState(dict):
    """dict with the .get used by file_loader, standing in for st.session_state"""


@pytest.fixture
def no_uploads(monkeypatch):
    monkeypatch.setattr(file_loader.st, "session_state", FakeSessionState())


@pytest.fixture
def uploaded(monkeypatch):
    def _install(buffer, key="kpis"):
        state = FakeSessionState(uploaded_files={key: buffer})
        monkeypatch.setattr(file_loader.st, "session_state", state)
    return _install


class TestGetFileSource:
    """Test upload-first source selection"""

    def test_disk_file(self, no_uploads, tmp_path):
        path = tmp_path / "kpis.csv"
        path.write_text("a,b\n1,2\n", encoding="utf-8")

        source, is_uploaded = get_file_source("kpis", str(path))
        assert source == str(path)
        assert is_uploaded is False

    def test_missing_file(self, no_uploads, tmp_path):
        assert get_file_source("kpis", str(tmp_path / "nope.csv")) == (None, False)

    def test_upload_wins(self, uploaded, tmp_path):
        buffer = BytesIO(b"x")
        uploaded(buffer)
        path = tmp_path / "kpis.csv"
        path.write_text("a\n", encoding="utf-8")

        assert get_file_source("kpis", str(path)) == (buffer, True)


class TestReadCsvText:
    """Test reading raw CSV text"""

    def test_reads_disk_and_drops_bom(self, no_uploads, tmp_path, growth_csv):
        path = tmp_path / "kpis.csv"
        path.write_bytes(b"\xef\xbb\xbf" + growth_csv.encode("utf-8"))

        assert read_csv_text("kpis", str(path)) == growth_csv

    def test_reads_upload_buffer(self, uploaded, growth_csv):
        uploaded(BytesIO(growth_csv.encode("utf-8")))
        assert read_csv_text("kpis", "does/not/exist.csv") == growth_csv

    def test_missing_everything_raises(self, no_uploads):
        with pytest.raises(FileNotFoundError, match="File not found"):
            read_csv_text("kpis", "does/not/exist.csv")

    def test_sample_export_readable(self, no_uploads, sample_csv_path):
        text = read_csv_text("kpis", sample_csv_path)
        assert text.startswith("Initiative Cards,Sub Initiative,Metric,Month")

    def test_decode_plain_utf8(self):
        assert decode_csv_bytes("Café".encode("utf-8")) == "Café"
