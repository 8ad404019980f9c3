import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional, Tuple, Union

from geoseed.errors import BulkOperationError
from geoseed.schemas import SearchDocument

logger = logging.getLogger(__name__)

DEFAULT_BULK_SIZE = 100000


class BatchState(str, Enum):
    FILLING = "FILLING"
    FLUSHING = "FLUSHING"
    DONE = "DONE"


@dataclass(frozen=True)
class PendingOperation:
    doc_id: str
    document: SearchDocument

    def action_lines(self) -> Tuple[str, str]:
        action_line = json.dumps({"index": {"_id": self.doc_id}})
        doc_line = json.dumps(self.document.to_source(), ensure_ascii=False)
        return action_line, doc_line


def build_payload(operations: List[PendingOperation]) -> bytes:
    lines = [line for operation in operations for line in operation.action_lines()]
    return ("\n".join(lines) + "\n").encode("utf-8")


def first_error(result: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for item in result.get("items", []):
        action = item.get("index") or item.get("create") or item.get("update") or {}
        if action.get("error"):
            error_info = action.get("error")
            reason = error_info.get("reason") if isinstance(error_info, dict) else str(error_info)
            return {"_id": action.get("_id"), "status": action.get("status"), "reason": reason}
    return None


class BatchAccumulator:
    """Fixed-capacity bulk buffer with all-or-nothing batch semantics.

    Operations are appended in order and sent as one synchronous ``_bulk``
    request whenever the buffer reaches ``capacity``. A batch whose response
    carries any error aborts the run: the raw response body is written to
    ``error_log_path`` and :class:`BulkOperationError` is raised. Nothing is
    retried.
    """

    def __init__(
        self,
        client,
        index_name: str,
        capacity: int = DEFAULT_BULK_SIZE,
        error_log_path: Union[str, Path] = "error.log",
    ) -> None:
        if capacity < 1:
            raise ValueError(f"batch capacity must be at least 1, got {capacity}")
        self.client = client
        self.index_name = index_name
        self.capacity = capacity
        self.error_log_path = Path(error_log_path)
        self.state = BatchState.FILLING
        self.pending: List[PendingOperation] = []
        self.inserted = 0
        self.requests = 0

    def add(self, doc_id: str, document: SearchDocument) -> None:
        if self.state is not BatchState.FILLING:
            raise RuntimeError(f"cannot add operations while {self.state.value}")
        self.pending.append(PendingOperation(doc_id, document))
        if len(self.pending) >= self.capacity:
            self.flush()

    def flush(self) -> int:
        """Send the buffered operations, returning how many were indexed."""
        if self.state is BatchState.DONE:
            raise RuntimeError("accumulator is closed")
        if not self.pending:
            return 0

        self.state = BatchState.FLUSHING
        batch_size = len(self.pending)
        status, body = self.client.bulk(self.index_name, build_payload(self.pending))
        self.requests += 1
        self._check_response(status, body, batch_size)

        self.inserted += batch_size
        self.pending = []
        self.state = BatchState.FILLING
        logger.info("[bulk] inserted=%d batch=%d requests=%d", self.inserted, batch_size, self.requests)
        return batch_size

    def close(self) -> int:
        """Flush the trailing partial batch and return the cumulative count."""
        if self.state is not BatchState.DONE:
            self.flush()
            self.state = BatchState.DONE
        return self.inserted

    def _check_response(self, status: int, body: str, batch_size: int) -> None:
        if status >= 300:
            self._fail(body, f"Bulk request failed (HTTP {status}) for batch of {batch_size}", {"status": status})
        try:
            result = json.loads(body)
        except json.JSONDecodeError:
            self._fail(body, f"Bulk response was not JSON for batch of {batch_size}", {"status": status})
        if not isinstance(result, dict) or result.get("errors") is not False:
            detail = first_error(result) if isinstance(result, dict) else None
            self._fail(body, f"Bulk response reported errors for batch of {batch_size}", detail)

    def _fail(self, body: str, message: str, detail: Any) -> NoReturn:
        self.state = BatchState.DONE
        self.error_log_path.write_text(body, encoding="utf-8")
        logger.error("%s; response written to %s", message, self.error_log_path)
        raise BulkOperationError(message, diagnostic_path=str(self.error_log_path), detail=detail)
