import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from geoseed.admin import load_admin_files
from geoseed.bootstrap import ensure_index, load_mapping
from geoseed.bulk import BatchAccumulator
from geoseed.config import Settings
from geoseed.documents import build_document, document_id
from geoseed.errors import to_error_payload
from geoseed.reader import GazetteerArchive

logger = logging.getLogger(__name__)


@dataclass
class SeedSummary:
    records: int = 0
    inserted: int = 0
    requests: int = 0
    index_created: bool = False
    sanitized_population: int = 0
    index_count: Optional[int] = None
    elapsed_sec: float = 0.0


class SeedRunner:
    def __init__(self, settings: Settings, client) -> None:
        self.settings = settings
        self.client = client

    def run(
        self,
        data_path: Union[str, Path],
        admin1_path: Union[str, Path],
        admin2_path: Union[str, Path],
    ) -> SeedSummary:
        settings = self.settings
        index_name = settings.index_name
        summary = SeedSummary()
        started = time.monotonic()

        try:
            logger.info("Loading admin files")
            admin1, admin2 = load_admin_files(admin1_path, admin2_path)

            logger.info("Checking index %s on %s", index_name, settings.os_url)
            summary.index_created = ensure_index(self.client, index_name, load_mapping(settings.mapping_path))

            logger.info("Opening file %s", data_path)
            batch = BatchAccumulator(
                self.client,
                index_name,
                capacity=settings.bulk_size,
                error_log_path=settings.error_log_path,
            )
            with GazetteerArchive(data_path) as archive:
                for record in archive:
                    document = build_document(record, admin1, admin2)
                    if record.population is not None and document.population is None:
                        summary.sanitized_population += 1
                    summary.records += 1
                    batch.add(document_id(record), document)
                summary.inserted = batch.close()
            summary.requests = batch.requests

            if summary.sanitized_population:
                logger.warning(
                    "Dropped %d negative population values (treated as no data)",
                    summary.sanitized_population,
                )

            if settings.verify_count:
                self.client.refresh(index_name)
                summary.index_count = self.client.count(index_name)
                logger.info("[verify] index=%s count=%d", index_name, summary.index_count)
        except Exception as exc:
            logger.error("[seed] failed after %d records: %s", summary.records, to_error_payload(exc))
            raise

        summary.elapsed_sec = time.monotonic() - started
        logger.info(
            "[seed] done records=%d inserted=%d requests=%d elapsed=%.1fs",
            summary.records,
            summary.inserted,
            summary.requests,
            summary.elapsed_sec,
        )
        return summary
