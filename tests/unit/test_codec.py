"""Tests for backup format detection, normalization and encoding."""

import io
import json

import pytest

from fleetkm.core.codec import (
    build_backup,
    decode,
    detect_format,
    encode,
    normalize,
    read_backup_text,
    write_backup_text,
)
from fleetkm.exceptions import (
    BackupReadError,
    BackupWriteError,
    ImportCancelledError,
    UnrecognizedFormatError,
)
from fleetkm.models.backup import BackupFormat

NOW = 1736935200000


def record(id=1, code="5", plate="AB123CD", **extra):
    data = {
        "id": id,
        "internalCode": code,
        "plate": plate,
        "isSold": False,
        "initialMileage": 1000,
        "quarterEndMileage": [1100, None, None, None],
    }
    data.update(extra)
    return data


class TestDetectFormat:
    def test_bare_array(self):
        assert detect_format([record()]) == BackupFormat.LEGACY_ARRAY

    def test_single_year(self):
        assert detect_format({"meta": {}, "data": []}) == BackupFormat.SINGLE_YEAR

    def test_multi_year(self):
        assert detect_format({"meta": {}, "datasets": {}}) == BackupFormat.MULTI_YEAR

    @pytest.mark.parametrize(
        "payload",
        [
            {"data": []},
            {"meta": None, "datasets": {}},
            {"meta": {}, "vehicles": []},
            "backup",
            42,
            None,
        ],
    )
    def test_unrecognized(self, payload):
        with pytest.raises(UnrecognizedFormatError):
            detect_format(payload)


class TestNormalize:
    def test_legacy_requires_confirmation(self):
        with pytest.raises(ImportCancelledError, match="Import cancelled") as exc:
            normalize([record()], current_year=2025, now=NOW)
        assert "2025" in exc.value.details

    def test_legacy_confirmed(self):
        backup = normalize([record()], current_year=2025, legacy_confirmed=True, now=NOW)
        assert backup.source_format == BackupFormat.LEGACY_ARRAY
        assert backup.years == [2025]
        assert backup.timestamp == NOW
        assert backup.datasets["2025"][0].plate == "AB 123 CD"

    def test_single_year_uses_meta_year(self):
        payload = {"meta": {"version": 1, "timestamp": 123, "year": 2023}, "data": [record()]}
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.source_format == BackupFormat.SINGLE_YEAR
        assert backup.years == [2023]
        assert backup.timestamp == 123

    def test_single_year_zero_timestamp_kept(self):
        payload = {"meta": {"version": 1, "timestamp": 0, "year": 2023}, "data": [record()]}
        assert normalize(payload, current_year=2025, now=NOW).timestamp == 0

    def test_multi_year_zero_timestamp_kept(self):
        payload = {"meta": {"timestamp": 0}, "datasets": {"2025": [record()]}}
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.meta.timestamp == 0

    def test_single_year_without_year(self):
        payload = {"meta": {"version": 1}, "data": [record()]}
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.years == [2025]
        assert backup.timestamp == NOW

    def test_multi_year(self):
        payload = {
            "meta": {"version": 2, "timestamp": 500, "companyName": "Trasporti Rossi"},
            "datasets": {"2024": [record()], "2025": [record(id=2, plate="FX123AB")]},
        }
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.years == [2024, 2025]
        assert backup.meta.company_name == "Trasporti Rossi"
        assert backup.rejected_years == {}

    def test_invalid_year_rejected_others_kept(self):
        payload = {
            "meta": {"timestamp": 500},
            "datasets": {
                "2024": [record(initialMileage=-1)],
                "2025": [record()],
                "next": [record()],
            },
        }
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.years == [2025]
        assert set(backup.rejected_years) == {"2024", "next"}

    def test_null_sold_flag_accepted(self):
        payload = {"meta": {}, "datasets": {"2024": [record(isSold=None)]}}
        backup = normalize(payload, current_year=2025, now=NOW)
        assert backup.datasets["2024"][0].is_sold is False

    def test_malformed_header(self):
        payload = {"meta": {"timestamp": "yesterday"}, "datasets": {}}
        with pytest.raises(UnrecognizedFormatError, match="Unrecognized"):
            normalize(payload, current_year=2025)

    def test_unrecognized_produces_nothing(self):
        with pytest.raises(UnrecognizedFormatError):
            normalize({"trucks": []}, current_year=2025)


class TestEncode:
    def test_always_writes_v2(self):
        backup = normalize(
            {"meta": {"version": 1, "timestamp": 7, "year": 2024}, "data": [record()]},
            current_year=2025,
        )
        payload = json.loads(encode(backup))
        assert payload["meta"]["version"] == 2
        assert list(payload["datasets"]) == ["2024"]
        assert "data" not in payload

    def test_company_name_written(self):
        backup = build_backup({2025: []}, "Autotrasporti Bianchi", now=NOW)
        payload = json.loads(encode(backup))
        assert payload["meta"] == {
            "version": 2,
            "timestamp": NOW,
            "companyName": "Autotrasporti Bianchi",
        }

    def test_company_name_omitted_when_unset(self):
        payload = json.loads(encode(build_backup({}, None, now=NOW)))
        assert "companyName" not in payload["meta"]

    def test_reimport_gives_same_vehicles(self):
        original = normalize(
            {"meta": {}, "datasets": {"2024": [record(notes="àèì")]}}, current_year=2024
        )
        text = encode(original)
        assert "àèì" in text
        again = normalize(decode(text), current_year=2024)
        assert again.datasets == original.datasets


class TestTransport:
    def test_decode_invalid_json(self):
        with pytest.raises(BackupReadError, match="backup.json"):
            decode("{not json", "backup.json")

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(BackupReadError):
            read_backup_text(tmp_path / "missing.json")

    def test_read_stdin(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO("[]"))
        assert read_backup_text("-") == "[]"

    def test_read_stdin_decode_failure(self, monkeypatch):
        class BinaryStdin:
            def read(self):
                raise UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")

        monkeypatch.setattr("sys.stdin", BinaryStdin())
        with pytest.raises(BackupReadError, match="stdin"):
            read_backup_text("-")

    def test_write_and_read_file(self, tmp_path):
        path = tmp_path / "backup.json"
        write_backup_text("{}", path)
        assert read_backup_text(path) == "{}"

    def test_write_stdout(self, capsys):
        write_backup_text("{}", "-")
        assert capsys.readouterr().out == "{}\n"

    def test_write_to_missing_directory(self, tmp_path):
        with pytest.raises(BackupWriteError):
            write_backup_text("{}", tmp_path / "nope" / "backup.json")
