"""Administrative-division lookups built from the GeoNames reference tables.

Both ``admin1CodesASCII.txt`` and ``admin2Codes.txt`` share the same headerless
four-column layout (code, name, ascii name, geonameid); only the shape of the
composite code differs. A single loader parameterized by key and value
extractors handles both.
"""

import csv
import logging
from operator import attrgetter
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Mapping, Tuple, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from geoseed.errors import StartupConfigError
from geoseed.schemas import ADMIN_COLUMNS, AdminCodeRow

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=BaseModel)

AdminLookup = Mapping[str, str]

code_of = attrgetter("code")
name_of = attrgetter("name")


def load_reference_table(
    path: Union[str, Path],
    model: Type[RowT],
    key: Callable[[RowT], str],
    value: Callable[[RowT], str],
    columns: Tuple[str, ...] = ADMIN_COLUMNS,
) -> AdminLookup:
    """Load a headerless TSV into a read-only ``key(row) -> value(row)`` mapping.

    Any unreadable file or malformed row fails the whole load.
    """
    file_path = Path(path)
    entries = {}
    try:
        with file_path.open("r", encoding="utf-8", newline="") as handle:
            reader = csv.reader(handle, delimiter="\t", quoting=csv.QUOTE_NONE)
            for line_number, row in enumerate(reader, start=1):
                if len(row) != len(columns):
                    raise StartupConfigError(
                        f"{file_path}:{line_number}: expected {len(columns)} columns, got {len(row)}",
                        stage="load_admin",
                        detail={"path": str(file_path), "line": line_number},
                    )
                try:
                    record = model.model_validate(dict(zip(columns, row)))
                except ValidationError as exc:
                    raise StartupConfigError(
                        f"{file_path}:{line_number}: malformed reference row",
                        stage="load_admin",
                        detail={"path": str(file_path), "line": line_number, "errors": exc.errors()},
                    ) from exc
                entries[key(record)] = value(record)
    except (OSError, UnicodeDecodeError, csv.Error) as exc:
        raise StartupConfigError(f"Could not read reference table {file_path}: {exc}", stage="load_admin") from exc
    return MappingProxyType(entries)


def load_admin_files(admin1_path: Union[str, Path], admin2_path: Union[str, Path]) -> Tuple[AdminLookup, AdminLookup]:
    admin1 = load_reference_table(admin1_path, AdminCodeRow, key=code_of, value=name_of)
    logger.info("Loaded %d admin1 names from %s", len(admin1), admin1_path)
    admin2 = load_reference_table(admin2_path, AdminCodeRow, key=code_of, value=name_of)
    logger.info("Loaded %d admin2 names from %s", len(admin2), admin2_path)
    return admin1, admin2
