"""
XML File Storage Implementation

DESIGN DECISION: Lessons are kept in a single human-readable XML file:

    <lessons>
      <lesson>
        <date>05.05.2025</date>
        <studentName>Ann</studentName>
        <hourlyRate>1000.0</hourlyRate>
        <hours>2.0</hours>
        <status>COMPLETED</status>
        <paidStatus>PAID</paidStatus>
      </lesson>
    </lessons>

TRADEOFFS:
- The whole file is rewritten on every save (fine for hundreds of lessons)
- No partial recovery: one bad lesson fails the whole load

SCHEMA EVOLUTION: files written before payment tracking existed have no
<paidStatus>. Those lessons load as UNPAID. This is the only
compatibility rule and it must not change.
"""

import contextlib
import os
import stat
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Iterable, Union

from lxml import etree
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from lesson_ledger.exceptions import PersistenceError
from lesson_ledger.models.lesson import LessonRecord, LessonStatus, PaymentStatus
from lesson_ledger.services.storage.interface import LessonStorageInterface


ROOT_TAG = "lessons"
LESSON_TAG = "lesson"

DATE_TAG = "date"
STUDENT_TAG = "studentName"
RATE_TAG = "hourlyRate"
HOURS_TAG = "hours"
STATUS_TAG = "status"
PAID_STATUS_TAG = "paidStatus"

REQUIRED_TAGS = (DATE_TAG, STUDENT_TAG, RATE_TAG, HOURS_TAG, STATUS_TAG)


def _default_file_mode() -> int:
    # umask can only be read by setting it
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


DEFAULT_FILE_MODE = _default_file_mode()


class XmlLessonStorage(LessonStorageInterface):
    """
    XML file implementation of lesson storage.

    Saves go to a temporary sibling file that then replaces the target,
    so a reader sees either the old document or the new one.
    """

    def __init__(
        self,
        path: Union[str, Path],
        date_format: str = "%d.%m.%Y",
        retry_attempts: int = 3,
    ):
        self._path = Path(path)
        self._date_format = date_format
        self._retry_attempts = retry_attempts
        self._parser = etree.XMLParser(
            resolve_entities=False,
            no_network=True,
            remove_blank_text=True,
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def exists(self) -> bool:
        return self._path.is_file()

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------

    def load(self) -> list[LessonRecord]:
        """Read every lesson; a missing file is an empty ledger."""
        if not self.exists():
            return []

        try:
            tree = etree.parse(str(self._path), self._parser)
        except etree.XMLSyntaxError as e:
            raise PersistenceError(f"Malformed lessons file: {e}", self._path) from e
        except OSError as e:
            raise PersistenceError(f"Cannot read lessons file: {e}", self._path) from e

        return [
            self._element_to_record(element, position)
            for position, element in enumerate(tree.getroot().iter(LESSON_TAG), start=1)
        ]

    def _element_to_record(self, element: etree._Element, position: int) -> LessonRecord:
        """Convert one <lesson> element to a LessonRecord."""
        values = {}
        for tag in REQUIRED_TAGS:
            text = element.findtext(tag)
            if text is None:
                raise PersistenceError(
                    f"Lesson #{position} is missing required field <{tag}>",
                    self._path,
                )
            values[tag] = text.strip()

        paid_text = element.findtext(PAID_STATUS_TAG)
        paid_status = (
            paid_text.strip() if paid_text is not None else PaymentStatus.UNPAID.value
        )

        try:
            return LessonRecord(
                date=datetime.strptime(values[DATE_TAG], self._date_format).date(),
                student_name=values[STUDENT_TAG],
                hourly_rate=values[RATE_TAG],
                hours=values[HOURS_TAG],
                lifecycle_status=LessonStatus(values[STATUS_TAG]),
                payment_status=PaymentStatus(paid_status),
            )
        except ValueError as e:
            raise PersistenceError(
                f"Lesson #{position} has an unparsable field: {e}",
                self._path,
            ) from e

    # -------------------------------------------------------------------------
    # Writing
    # -------------------------------------------------------------------------

    def _record_to_element(self, record: LessonRecord) -> etree._Element:
        """Convert a LessonRecord to a <lesson> element."""
        lesson = etree.Element(LESSON_TAG)
        fields = (
            (DATE_TAG, record.date.strftime(self._date_format)),
            (STUDENT_TAG, record.student_name),
            (RATE_TAG, str(record.hourly_rate)),
            (HOURS_TAG, str(record.hours)),
            (STATUS_TAG, record.lifecycle_status.value),
            (PAID_STATUS_TAG, record.payment_status.value),
        )
        for tag, text in fields:
            etree.SubElement(lesson, tag).text = text
        return lesson

    def to_bytes(self, records: Iterable[LessonRecord]) -> bytes:
        """Serialize ``records`` to a complete XML document."""
        root = etree.Element(ROOT_TAG)
        for record in records:
            root.append(self._record_to_element(record))
        return etree.tostring(
            root,
            pretty_print=True,
            xml_declaration=True,
            encoding="UTF-8",
            standalone=False,
        )

    def save(self, records: Iterable[LessonRecord]) -> None:
        """Overwrite the file with ``records``, retrying transient I/O errors."""
        try:
            payload = self.to_bytes(records)
        except ValueError as e:
            # lxml refuses text XML cannot represent
            raise PersistenceError(f"Cannot serialize lessons: {e}", self._path) from e

        retryer = Retrying(
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
            retry=retry_if_exception_type(OSError),
            reraise=True,
        )
        try:
            retryer(self._write_atomically, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write lessons file: {e}", self._path) from e

    def _target_mode(self) -> int:
        try:
            return stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_FILE_MODE

    def _write_atomically(self, payload: bytes) -> None:
        """Write through a temp file, keeping the target's permissions."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=self._path.name + "-",
            suffix=".tmp",
            dir=self._path.parent,
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.chmod(temp_name, self._target_mode())
            os.replace(temp_name, self._path)
        except OSError:
            with contextlib.suppress(OSError):
                os.unlink(temp_name)
            raise
