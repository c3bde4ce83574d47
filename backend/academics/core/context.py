import time
import uuid
from dataclasses import dataclass, field


def create_request_id() -> str:
    return uuid.uuid4().hex[:12]


@dataclass
class RequestContext:
    """
    Per-call metadata handed explicitly to every engine operation.
    The store bumps `query_count` for each statement run on its behalf.
    """
    request_id: str = field(default_factory=create_request_id)
    method: str = "INTERNAL"
    path: str = ""
    started_at: float = field(default_factory=time.monotonic)
    query_count: int = 0

    def record_query(self) -> None:
        self.query_count += 1

    def elapsed_ms(self) -> float:
        return round((time.monotonic() - self.started_at) * 1000, 2)
