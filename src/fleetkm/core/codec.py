"""Backup encoding, decoding and format normalization.

Reading accepts the legacy bare array, v1 single-year and v2 multi-year
shapes and always produces the canonical v2 form. Writing always emits v2.
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Any, Optional, Union

from pydantic import TypeAdapter, ValidationError

from fleetkm.exceptions import (
    BackupReadError,
    BackupWriteError,
    ImportCancelledError,
    UnrecognizedFormatError,
)
from fleetkm.models.backup import (
    Backup,
    BackupFormat,
    BackupMeta,
    InputPayload,
    LegacyArrayPayload,
    MultiYearPayload,
    NormalizedBackup,
    SingleYearPayload,
)
from fleetkm.models.dataset import now_ms
from fleetkm.models.vehicle import Vehicle

logger = logging.getLogger(__name__)

STDIO = "-"

_vehicle_list = TypeAdapter(list[Vehicle])


# ─────────────────────────────────────────────────────────────────────────────
# Detection
# ─────────────────────────────────────────────────────────────────────────────


def detect_format(payload: Any) -> BackupFormat:
    """Identify the payload shape by its structure.

    Raises:
        UnrecognizedFormatError: If no known shape matches
    """
    if isinstance(payload, list):
        return BackupFormat.LEGACY_ARRAY
    if isinstance(payload, dict) and payload.get("meta") is not None:
        if payload.get("data") is not None:
            return BackupFormat.SINGLE_YEAR
        if payload.get("datasets") is not None:
            return BackupFormat.MULTI_YEAR
    raise UnrecognizedFormatError()


def parse_payload(payload: Any) -> InputPayload:
    """Validate the payload into its input variant.

    Raises:
        UnrecognizedFormatError: If the shape is unknown or its header is malformed
    """
    fmt = detect_format(payload)
    try:
        if fmt == BackupFormat.LEGACY_ARRAY:
            return LegacyArrayPayload(records=payload)
        if fmt == BackupFormat.SINGLE_YEAR:
            return SingleYearPayload.model_validate(payload)
        return MultiYearPayload.model_validate(payload)
    except ValidationError as e:
        raise UnrecognizedFormatError(f"Malformed {fmt.value} backup: {e.errors()[0]['msg']}")


# ─────────────────────────────────────────────────────────────────────────────
# Normalization
# ─────────────────────────────────────────────────────────────────────────────


def _timestamp_or(meta: BackupMeta, now: int) -> int:
    """An explicit 0 is kept; only a missing timestamp falls back to ``now``."""
    return meta.timestamp if meta.timestamp is not None else now


def _legacy_to_canonical(
    payload: LegacyArrayPayload, current_year: int, now: int
) -> tuple[BackupMeta, dict[str, Any]]:
    meta = BackupMeta(version=1, timestamp=now, year=current_year)
    return meta, {str(current_year): payload.records}


def _single_year_to_canonical(
    payload: SingleYearPayload, current_year: int, now: int
) -> tuple[BackupMeta, dict[str, Any]]:
    year = payload.meta.year or current_year
    meta = payload.meta.model_copy(
        update={"timestamp": _timestamp_or(payload.meta, now), "year": year}
    )
    return meta, {str(year): payload.data}


def _multi_year_to_canonical(
    payload: MultiYearPayload, now: int
) -> tuple[BackupMeta, dict[str, Any]]:
    meta = payload.meta.model_copy(update={"timestamp": _timestamp_or(payload.meta, now)})
    return meta, payload.datasets


def _validate_years(
    raw: dict[str, Any],
) -> tuple[dict[str, list[Vehicle]], dict[str, str]]:
    """Validate each year independently; bad years are reported, not fatal."""
    datasets: dict[str, list[Vehicle]] = {}
    rejected: dict[str, str] = {}

    for key, records in raw.items():
        if not re.fullmatch(r"[0-9]{1,4}", key):
            rejected[key] = "Year key is not a number"
            continue
        try:
            vehicles = _vehicle_list.validate_python(records)
        except ValidationError as e:
            rejected[key] = f"{e.error_count()} invalid field(s): {e.errors()[0]['msg']}"
            continue
        datasets[str(int(key))] = vehicles

    for key, reason in rejected.items():
        logger.warning("Skipping year %s in backup: %s", key, reason)

    return datasets, rejected


def normalize(
    payload: Any,
    current_year: int,
    legacy_confirmed: bool = False,
    now: Optional[int] = None,
) -> NormalizedBackup:
    """Convert any supported payload into the canonical form.

    Args:
        payload: Decoded JSON document
        current_year: Year displayed by the caller; keys legacy and yearless v1 data
        legacy_confirmed: Operator agreed to read a bare array as ``current_year``
        now: Fallback timestamp in epoch ms when the payload carries none

    Raises:
        UnrecognizedFormatError: Unknown shape; nothing is accepted
        ImportCancelledError: Bare array without operator confirmation
    """
    now = now if now is not None else now_ms()
    parsed = parse_payload(payload)

    if isinstance(parsed, LegacyArrayPayload):
        if not legacy_confirmed:
            raise ImportCancelledError(
                f"Old format file without a year. Confirm to import it into {current_year}."
            )
        fmt = BackupFormat.LEGACY_ARRAY
        meta, raw = _legacy_to_canonical(parsed, current_year, now)
    elif isinstance(parsed, SingleYearPayload):
        fmt = BackupFormat.SINGLE_YEAR
        meta, raw = _single_year_to_canonical(parsed, current_year, now)
    else:
        fmt = BackupFormat.MULTI_YEAR
        meta, raw = _multi_year_to_canonical(parsed, now)

    datasets, rejected = _validate_years(raw)
    logger.info(
        "Normalized %s backup: %d year(s), %d rejected",
        fmt.value,
        len(datasets),
        len(rejected),
    )
    return NormalizedBackup(
        meta=meta,
        datasets=datasets,
        source_format=fmt,
        rejected_years=rejected,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Encoding & transport
# ─────────────────────────────────────────────────────────────────────────────


def build_backup(
    datasets: dict[int, list[Vehicle]],
    company_name: Optional[str],
    now: Optional[int] = None,
) -> Backup:
    """Assemble a canonical v2 backup."""
    return Backup(
        meta=BackupMeta(
            timestamp=now if now is not None else now_ms(),
            company_name=company_name,
        ),
        datasets={str(year): list(vehicles) for year, vehicles in datasets.items()},
    )


def encode(backup: Backup) -> str:
    """Serialize to v2 JSON text."""
    return json.dumps(backup.to_payload(), indent=2, ensure_ascii=False)


def decode(text: str, source: str = "input") -> Any:
    """Parse JSON text.

    Raises:
        BackupReadError: If text is not valid JSON
    """
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise BackupReadError(source, f"Not a valid JSON file: {e.msg} (line {e.lineno})")


def read_backup_text(source: Union[str, Path]) -> str:
    """Read backup text from a file, or standard input when ``source`` is "-".

    Raises:
        BackupReadError: On any I/O failure
    """
    from_stdin = str(source) == STDIO
    try:
        if from_stdin:
            return sys.stdin.read()
        return Path(source).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise BackupReadError("stdin" if from_stdin else str(source), str(e))


def write_backup_text(text: str, destination: Union[str, Path]) -> None:
    """Write backup text to a file, or standard output when ``destination`` is "-".

    Raises:
        BackupWriteError: On any I/O failure
    """
    if str(destination) == STDIO:
        sys.stdout.write(text + "\n")
        return
    try:
        Path(destination).write_text(text, encoding="utf-8")
    except OSError as e:
        raise BackupWriteError(str(destination), str(e))
