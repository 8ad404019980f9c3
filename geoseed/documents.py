from typing import Mapping, Optional

from geoseed.schemas import GazetteerRecord, SearchDocument


def admin1_key(record: GazetteerRecord) -> str:
    return f"{record.country_code.upper()}.{record.admin1_code}"


def admin2_key(record: GazetteerRecord) -> str:
    return f"{record.country_code.upper()}.{record.admin1_code}.{record.admin2_code}"


def sanitize_population(population: Optional[int]) -> Optional[int]:
    # GeoNames uses negative figures as a "no data" marker.
    if population is None or population < 0:
        return None
    return population


def build_document(
    record: GazetteerRecord,
    admin1: Mapping[str, str],
    admin2: Mapping[str, str],
) -> SearchDocument:
    return SearchDocument(
        name=record.name,
        ascii_name=record.ascii_name,
        alternate_names=record.alternate_names,
        location=[record.longitude, record.latitude],
        country_code=record.country_code,
        feature_class=record.feature_class,
        feature_code=record.feature_code,
        admin1=admin1.get(admin1_key(record)),
        admin2=admin2.get(admin2_key(record)),
        population=sanitize_population(record.population),
        elevation=record.elevation,
        timezone=record.timezone,
        modification_date=record.modification_date,
    )


def document_id(record: GazetteerRecord) -> str:
    return str(record.id)
