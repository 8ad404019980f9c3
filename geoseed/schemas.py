import re
from datetime import date
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

Int64 = Annotated[int, Field(ge=INT64_MIN, le=INT64_MAX)]

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
INTEGER_TEXT = re.compile(r"[-+]?\d+")


def _integer_text(value: Any) -> Any:
    if isinstance(value, str) and value != "" and not INTEGER_TEXT.fullmatch(value):
        raise ValueError("expected a base-10 integer")
    return value


ADMIN_COLUMNS = ("code", "name", "ascii_name", "geonameid")

GAZETTEER_COLUMNS = (
    "id",
    "name",
    "ascii_name",
    "alternate_names",
    "latitude",
    "longitude",
    "feature_class",
    "feature_code",
    "country_code",
    "cc2",
    "admin1_code",
    "admin2_code",
    "admin3_code",
    "admin4_code",
    "population",
    "elevation",
    "dem",
    "timezone",
    "modification_date",
)


class AdminCodeRow(BaseModel):
    """One row of admin1CodesASCII.txt / admin2Codes.txt."""

    model_config = ConfigDict(frozen=True)

    code: str
    name: str
    ascii_name: str
    geonameid: Int64

    @field_validator("geonameid", mode="before")
    @classmethod
    def _geonameid_text(cls, value: Any) -> Any:
        return _integer_text(value)


class GazetteerRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Int64
    name: str
    ascii_name: str
    alternate_names: str
    latitude: float
    longitude: float
    feature_class: Optional[str] = Field(default=None, min_length=1, max_length=1)
    feature_code: str = ""
    country_code: str = ""
    cc2: str = ""
    admin1_code: str = ""
    admin2_code: str = ""
    admin3_code: str = ""
    admin4_code: Optional[str] = None
    population: Optional[Int64] = None
    elevation: Optional[Int64] = None
    dem: Optional[Int64] = None
    timezone: str = ""
    modification_date: date

    @field_validator("feature_class", "admin4_code", "population", "elevation", "dem", mode="before")
    @classmethod
    def _empty_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and value == "":
            return None
        return value

    @field_validator("modification_date", mode="before")
    @classmethod
    def _strict_iso_date(cls, value: Any) -> Any:
        if isinstance(value, str) and not ISO_DATE.fullmatch(value):
            raise ValueError("expected yyyy-MM-dd")
        return value

    @field_validator("id", "population", "elevation", "dem", mode="before")
    @classmethod
    def _integer_columns(cls, value: Any) -> Any:
        return _integer_text(value)


class SearchDocument(BaseModel):
    name: str
    ascii_name: str
    alternate_names: str
    location: List[float]
    country_code: str
    feature_class: Optional[str] = None
    feature_code: str
    admin1: Optional[str] = None
    admin2: Optional[str] = None
    population: Optional[int] = None
    elevation: Optional[int] = None
    timezone: str
    modification_date: date

    def to_source(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
