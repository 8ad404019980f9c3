import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_MAPPING_PATH = PACKAGE_DIR / "mappings" / "geolocations.mapping.json"


def _coerce_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in {"1", "true", "yes", "y"}:
        return True
    if lowered in {"0", "false", "no", "n"}:
        return False
    return default


def _coerce_int(value: Optional[str], default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _coerce_float(value: Optional[str], default: Optional[float]) -> Optional[float]:
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class Settings:
    os_url: str
    index_name: str
    mapping_path: Path

    bulk_size: int
    timeout_sec: Optional[float]
    error_log_path: Path
    verify_count: bool

    log_level: str

    @staticmethod
    def from_env() -> "Settings":
        mapping = os.environ.get("GEO_MAPPING_PATH")
        return Settings(
            os_url=os.environ.get("OS_URL", "http://localhost:9200"),
            index_name=os.environ.get("GEO_INDEX", "geolocations"),
            mapping_path=Path(mapping) if mapping else DEFAULT_MAPPING_PATH,
            bulk_size=_coerce_int(os.environ.get("GEO_BULK_SIZE"), 100000),
            timeout_sec=_coerce_float(os.environ.get("OS_TIMEOUT_SEC"), None),
            error_log_path=Path(os.environ.get("GEO_ERROR_LOG", "error.log")),
            verify_count=_coerce_bool(os.environ.get("GEO_VERIFY_COUNT"), True),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )

    def override(self, params: Optional[Dict[str, Any]]) -> "Settings":
        """Return a copy with every non-None entry of ``params`` applied."""
        if not params:
            return self

        changes: Dict[str, Any] = {}
        if params.get("os_url") is not None:
            changes["os_url"] = str(params["os_url"])
        if params.get("index_name") is not None:
            changes["index_name"] = str(params["index_name"])
        if params.get("mapping_path") is not None:
            changes["mapping_path"] = Path(params["mapping_path"])
        if params.get("bulk_size") is not None:
            changes["bulk_size"] = int(params["bulk_size"])
        if params.get("timeout_sec") is not None:
            changes["timeout_sec"] = float(params["timeout_sec"])
        if params.get("error_log_path") is not None:
            changes["error_log_path"] = Path(params["error_log_path"])
        if params.get("verify_count") is not None:
            changes["verify_count"] = bool(params["verify_count"])
        if params.get("log_level") is not None:
            changes["log_level"] = str(params["log_level"]).upper()
        return replace(self, **changes)
