"""
CSV export and import of contacts.

Export writes a fixed seven-column layout. Import skips one header line and
reads columns positionally; the ID and Group columns are ignored, so an
import never links contacts to groups.
"""

import csv
import io
from typing import Generator

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from contactbook.contacts.models import Contact
from contactbook.contacts.repository import ContactStore
from contactbook.contacts.schemas import CSVImportResponse, CSVRowError, ContactPayload
from contactbook.contacts.service import utcnow
from contactbook.shared.exceptions import RecordConflictError
from contactbook.shared.logging import get_logger
from contactbook.shared.results import Failure, Result

logger = get_logger(__name__)

EXPORT_HEADER = ["ID", "First Name", "Last Name", "Email", "Phone", "Address", "Group"]

# Positional import mapping: column index -> contact attribute.
IMPORT_COLUMNS: dict[int, str] = {
    1: "first_name",
    2: "last_name",
    3: "email",
    4: "phone",
    5: "address",
}
MIN_IMPORT_FIELDS = max(IMPORT_COLUMNS) + 1

COLUMN_LABELS: dict[str, str] = {
    name: EXPORT_HEADER[index] for index, name in IMPORT_COLUMNS.items()
}


class ContactCSVCodec:
    """Serialize contacts to CSV and create contacts from uploaded CSV."""

    def __init__(
        self,
        repository: ContactStore,
        encoding: str = "utf-8",
        max_bytes: int | None = None,
    ) -> None:
        """Initialize codec.

        Args:
            repository: Contact record store.
            encoding: Encoding of exported bytes and expected for uploads.
            max_bytes: Optional upper bound on upload size.
        """
        self._repo = repository
        self.encoding = encoding
        self.max_bytes = max_bytes

    async def export_csv(self) -> bytes:
        """Render every contact, in insertion order, as CSV bytes.

        Missing values are written as empty fields. Fields are quoted only
        when they contain a delimiter, quote or line break.
        """
        contacts = await self._repo.list_all()

        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(EXPORT_HEADER)
        for contact in contacts:
            writer.writerow(
                [
                    contact.id,
                    contact.first_name,
                    contact.last_name,
                    contact.email or "",
                    contact.phone or "",
                    contact.address or "",
                    contact.group.name if contact.group is not None else "",
                ]
            )

        logger.info("Contacts exported", extra={"row_count": len(contacts)})
        return buffer.getvalue().encode(self.encoding)

    def check_size(self, size: int | None) -> Failure | None:
        """Reject an upload larger than ``max_bytes``; unknown sizes pass."""
        if self.max_bytes is not None and size is not None and size > self.max_bytes:
            return Failure.import_failed(
                f"File exceeds the {self.max_bytes} byte upload limit",
                size=size,
            )
        return None

    def decode(self, content: bytes) -> Result[str]:
        """Decode upload bytes, dropping a leading byte-order mark."""
        failure = self.check_size(len(content))
        if failure:
            return failure
        try:
            text = content.decode(self.encoding)
        except (UnicodeDecodeError, LookupError) as e:
            return Failure.import_failed(f"File encoding error: {e}")

        text = text.lstrip("\ufeff")
        if not text.strip():
            return Failure.import_failed("CSV file is empty")
        return text

    def parse(
        self,
        text: str,
    ) -> Generator[tuple[int, ContactPayload | None, CSVRowError | None], None, None]:
        """Parse CSV text after the header line.

        Yields:
            Tuples of (line_number, payload or None, error or None). Blank
            lines are skipped.
        """
        reader = csv.reader(io.StringIO(text))
        try:
            next(reader)  # header, never validated
        except (StopIteration, csv.Error):
            return

        while True:
            try:
                fields = next(reader)
            except StopIteration:
                return
            except csv.Error as e:
                yield reader.line_num, None, CSVRowError(
                    line_number=reader.line_num,
                    error=f"Malformed CSV line: {e}",
                )
                continue

            if not fields or all(not f.strip() for f in fields):
                continue

            payload, error = self._parse_row(reader.line_num, fields)
            yield reader.line_num, payload, error

    def _parse_row(
        self,
        line_number: int,
        fields: list[str],
    ) -> tuple[ContactPayload | None, CSVRowError | None]:
        if len(fields) < MIN_IMPORT_FIELDS:
            return None, CSVRowError(
                line_number=line_number,
                error=f"Expected at least {MIN_IMPORT_FIELDS} fields, got {len(fields)}",
                value=",".join(fields),
            )

        data = {name: fields[index].strip() for index, name in IMPORT_COLUMNS.items()}
        try:
            return ContactPayload.model_validate(data), None
        except ValidationError as e:
            first = e.errors()[0]
            name = to_snake(str(first["loc"][0])) if first["loc"] else None
            return None, CSVRowError(
                line_number=line_number,
                field=COLUMN_LABELS.get(name or ""),
                error=first["msg"],
                value=data.get(name or ""),
            )

    async def import_csv(self, content: bytes) -> Result[CSVImportResponse]:
        """Create one new contact per valid data line.

        Bad lines and lines rejected by the store's uniqueness constraints
        are skipped and reported; every other line is persisted in its own
        savepoint.

        Returns:
            Import summary, or an IMPORT_FAILED failure when the file as a
            whole cannot be read.
        """
        text = self.decode(content)
        if isinstance(text, Failure):
            logger.warning("CSV import rejected", extra={"reason": text.message})
            return text

        imported = 0
        total_rows = 0
        errors: list[CSVRowError] = []

        for line_number, payload, error in self.parse(text):
            total_rows += 1
            if payload is None:
                errors.append(error)  # type: ignore[arg-type]
                continue

            now = utcnow()
            contact = Contact(
                first_name=payload.first_name,
                last_name=payload.last_name,
                email=payload.email,
                phone=payload.phone,
                address=payload.address,
                created_at=now,
                updated_at=now,
            )
            try:
                await self._repo.create(contact)
            except RecordConflictError as e:
                errors.append(
                    CSVRowError(
                        line_number=line_number,
                        field=COLUMN_LABELS.get(e.constraint or ""),
                        error=e.message,
                        value=getattr(payload, e.constraint) if e.constraint else None,
                    )
                )
                continue
            imported += 1

        logger.info(
            "CSV import completed",
            extra={
                "imported_count": imported,
                "failed_count": len(errors),
                "total_rows": total_rows,
            },
        )

        return CSVImportResponse(
            message=f"{imported} contacts imported successfully",
            imported_count=imported,
            failed_count=len(errors),
            total_rows=total_rows,
            errors=errors,
        )
