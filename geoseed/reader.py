import csv
import io
import logging
import zipfile
import zlib
from pathlib import Path
from typing import IO, Iterator, List, Optional, Union

from pydantic import ValidationError

from geoseed.errors import SchemaError, StartupConfigError
from geoseed.schemas import GAZETTEER_COLUMNS, GazetteerRecord

logger = logging.getLogger(__name__)


def decode_row(row: List[str], line_number: int) -> GazetteerRecord:
    if len(row) != len(GAZETTEER_COLUMNS):
        raise SchemaError(
            f"line {line_number}: expected {len(GAZETTEER_COLUMNS)} columns, got {len(row)}",
            line_number=line_number,
        )
    try:
        return GazetteerRecord.model_validate(dict(zip(GAZETTEER_COLUMNS, row)))
    except ValidationError as exc:
        fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error.get("loc"))
        raise SchemaError(
            f"line {line_number}: invalid value for {fields or 'row'}",
            line_number=line_number,
            detail=exc.errors(include_url=False, include_context=False),
        ) from exc


def iter_records(stream: IO[bytes]) -> Iterator[GazetteerRecord]:
    """Decode a GeoNames dump byte stream lazily, one record per row."""
    text = io.TextIOWrapper(stream, encoding="utf-8", newline="")
    reader = csv.reader(text, delimiter="\t", quoting=csv.QUOTE_NONE)
    line_number = 0
    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except (csv.Error, UnicodeDecodeError) as exc:
            raise SchemaError(f"line {line_number + 1}: {exc}", line_number=line_number + 1) from exc
        except (zipfile.BadZipFile, zlib.error, OSError) as exc:
            raise StartupConfigError(
                f"Archive entry is corrupt near line {line_number + 1}: {exc}",
                stage="read_archive",
                detail={"line": line_number + 1},
            ) from exc
        line_number += 1
        yield decode_row(row, line_number)


class GazetteerArchive:
    """The first entry of a zip archive, read as a stream of gazetteer records.

    Opening fails fast on archive problems. Iteration is single-pass: once the
    records are consumed, reopen the archive to read them again.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        self.entry_name: Optional[str] = None
        self._archive: Optional[zipfile.ZipFile] = None
        self._stream: Optional[IO[bytes]] = None
        self._records: Optional[Iterator[GazetteerRecord]] = None

    def open(self) -> "GazetteerArchive":
        try:
            self._archive = zipfile.ZipFile(self.path)
            entries = self._archive.infolist()
            if not entries:
                raise StartupConfigError(f"Archive {self.path} has no entries", stage="open_archive")
            self.entry_name = entries[0].filename
            if len(entries) > 1:
                logger.info("Archive %s has %d entries, reading %s", self.path, len(entries), self.entry_name)
            self._stream = self._archive.open(entries[0])
        except (OSError, zipfile.BadZipFile) as exc:
            self.close()
            raise StartupConfigError(f"Could not open archive {self.path}: {exc}", stage="open_archive") from exc
        except StartupConfigError:
            self.close()
            raise
        self._records = iter_records(self._stream)
        return self

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        if self._archive is not None:
            self._archive.close()
            self._archive = None

    def __enter__(self) -> "GazetteerArchive":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[GazetteerRecord]:
        if self._records is None:
            raise RuntimeError("archive is not open")
        return self._records
