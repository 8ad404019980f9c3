import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from geoseed.config import DEFAULT_MAPPING_PATH
from geoseed.errors import IndexBootstrapError

logger = logging.getLogger(__name__)


def load_mapping(path: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
    mapping_path = Path(path) if path else DEFAULT_MAPPING_PATH
    try:
        return json.loads(mapping_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise IndexBootstrapError(f"Could not load index mapping {mapping_path}: {exc}") from exc


def ensure_index(client, index_name: str, mapping: Dict[str, Any]) -> bool:
    """Create ``index_name`` and apply ``mapping`` unless the index already exists.

    Returns True when the index was created. If the mapping call fails after
    the index was created, the index is left in place without the mapping and
    the error is raised; it is not rolled back or retried.
    """
    status = client.index_status(index_name)
    if 200 <= status < 300:
        logger.info("Index %s exists", index_name)
        return False
    if status != 404:
        raise IndexBootstrapError(f"Could not check index {index_name} (HTTP {status})", detail={"status": status})

    logger.info("Creating index %s", index_name)
    status, body = client.create_index(index_name)
    if status >= 300:
        raise IndexBootstrapError(f"Could not create index {index_name} ({status}): {body}", detail={"status": status})

    logger.info("Applying mapping to index %s", index_name)
    status, body = client.put_mapping(index_name, mapping)
    if status >= 300:
        raise IndexBootstrapError(
            f"Could not update mapping for index {index_name} ({status}): {body}",
            detail={"status": status, "created": True},
        )
    logger.info("Created mapping for index %s", index_name)
    return True
