"""File-backed store of per-year calendar documents and the configuration record."""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models.core import CalendarConfig, CalendarDocument, valid_year, MIN_YEAR, MAX_YEAR
from ..models.errors import ValidationException


CONFIG_RECORD = "config"


def _field_errors(error: ValidationError) -> Dict[str, List[str]]:
    """Group pydantic errors by dotted field path."""
    field_errors: Dict[str, List[str]] = {}
    for err in error.errors():
        path = ".".join(str(loc) for loc in err['loc']) or "__root__"
        field_errors.setdefault(path, []).append(err['msg'])
    return field_errors


def validate_document(year: int, document: Any) -> CalendarDocument:
    """
    Check a calendar document before it may be persisted.

    Args:
        year: Partition key the document is written under
        document: Decoded JSON body

    Returns:
        The parsed document

    Raises:
        ValidationException: If the year or the document shape is invalid
    """
    if not valid_year(year):
        raise ValidationException(
            error_code="INVALID_YEAR",
            message=f"Year must be an integer between {MIN_YEAR} and {MAX_YEAR}",
            details={"year": year}
        )

    if not isinstance(document, dict):
        raise ValidationException(
            error_code="INVALID_DOCUMENT",
            message="Invalid data structure.",
            details={"expected": "object", "received": type(document).__name__}
        )

    # lastUpdatedText may be null but must be present
    missing = [field for field in ("dayData", "keyItems") if document.get(field) is None]
    if "lastUpdatedText" not in document:
        missing.append("lastUpdatedText")
    if missing:
        raise ValidationException(
            error_code="INVALID_DOCUMENT",
            message="Invalid data structure.",
            details={"missing_fields": missing}
        )

    try:
        parsed = CalendarDocument.model_validate(document)
    except ValidationError as e:
        raise ValidationException(
            error_code="INVALID_DOCUMENT",
            message="Invalid data structure.",
            details={"field_errors": _field_errors(e)}
        )

    foreign = parsed.day_keys_outside(year)
    if foreign:
        raise ValidationException(
            error_code="DAY_OUTSIDE_YEAR",
            message=f"Day entries must belong to {year}",
            details={"day_keys": foreign[:10]}
        )

    return parsed


def validate_config(config: Any) -> CalendarConfig:
    """
    Check a configuration record before it may be persisted.

    Raises:
        ValidationException: If the configuration is malformed
    """
    if not isinstance(config, dict):
        raise ValidationException(
            error_code="INVALID_CONFIG",
            message="Configuration must be a JSON object",
            details={"received": type(config).__name__}
        )
    try:
        return CalendarConfig.model_validate(config)
    except ValidationError as e:
        raise ValidationException(
            error_code="INVALID_CONFIG",
            message="Invalid configuration.",
            details={"field_errors": _field_errors(e)}
        )


class DocumentStore:
    """Persists one JSON record per calendar year plus one configuration record.

    Writes replace the whole record through a temporary file and an atomic
    rename, so readers see either the old or the new document. Writes are
    serialized per record; concurrent writers of the same year are still
    last-write-wins.
    """

    def __init__(self, data_dir: str):
        self.data_dir = Path(data_dir)
        self.logger = logging.getLogger(__name__)
        self._locks: Dict[str, asyncio.Lock] = {}

    def _record_path(self, record: str) -> Path:
        if record == CONFIG_RECORD:
            return self.data_dir / "config.json"
        return self.data_dir / f"{record}_data.json"

    def _lock_for(self, record: str) -> asyncio.Lock:
        lock = self._locks.get(record)
        if lock is None:
            lock = self._locks[record] = asyncio.Lock()
        return lock

    def _read_record(self, record: str) -> Optional[Dict[str, Any]]:
        path = self._record_path(record)
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.error(f"Error reading record {record} from {path}: {e}")
            return None

        if not isinstance(data, dict):
            self.logger.error(f"Record {record} in {path} is not a JSON object, ignoring it")
            return None
        return data

    def _write_record(self, record: str, data: Dict[str, Any]) -> None:
        path = self._record_path(record)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=self.data_dir, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise

    async def _persist(self, record: str, data: Dict[str, Any]) -> bool:
        async with self._lock_for(record):
            try:
                await asyncio.to_thread(self._write_record, record, data)
            except (OSError, TypeError, ValueError) as e:
                self.logger.error(f"Error writing record {record}: {e}")
                return False
        return True

    async def read(self, year: int) -> Optional[Dict[str, Any]]:
        """Return the stored document for ``year``, or None if absent or unreadable."""
        if not valid_year(year):
            return None
        return await asyncio.to_thread(self._read_record, str(year))

    async def write(self, year: int, document: Dict[str, Any]) -> bool:
        """
        Validate and persist a whole document for ``year``.

        Returns:
            True if the document is durably stored, False on I/O failure

        Raises:
            ValidationException: If the document is rejected before storage is touched
        """
        validate_document(year, document)
        ok = await self._persist(str(year), document)
        if ok:
            self.logger.info(f"Saved calendar document for {year}")
        return ok

    async def read_config(self) -> Optional[Dict[str, Any]]:
        """Return the stored configuration record, or None if absent or unreadable."""
        return await asyncio.to_thread(self._read_record, CONFIG_RECORD)

    async def write_config(self, config: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Validate and persist the configuration record.

        Returns:
            The stored record, or None on I/O failure

        Raises:
            ValidationException: If the configuration is malformed
        """
        record = validate_config(config).model_dump()
        if not await self._persist(CONFIG_RECORD, record):
            return None
        self.logger.info("Saved calendar configuration")
        return record

    def list_years(self) -> List[int]:
        """Years that have a stored document."""
        if not self.data_dir.exists():
            return []
        years = []
        for path in self.data_dir.glob("*_data.json"):
            prefix = path.name[:-len("_data.json")]
            if prefix.isdigit():
                years.append(int(prefix))
        return sorted(years)
