import os
from dataclasses import dataclass
from typing import Optional


def _get_bool(name: str, default: bool) -> bool:
    val = os.environ.get(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Config:
    db_path: str = os.environ.get("LINKRANK_DB_PATH", "data/linkrank.db")
    damping: float = float(os.environ.get("PAGERANK_DAMPING", "0.85"))
    tolerance: float = float(os.environ.get("PAGERANK_TOLERANCE", "1e-6"))
    # 0 disables the iteration cap
    max_iterations: int = int(os.environ.get("PAGERANK_MAX_ITER", "1000"))
    persist_scores: bool = _get_bool("PERSIST_SCORES", True)
    request_timeout_connect: int = int(os.environ.get("HTTP_CONNECT_TIMEOUT", "10"))
    request_timeout_read: int = int(os.environ.get("HTTP_READ_TIMEOUT", "60"))
    api_host: str = os.environ.get("API_HOST", "0.0.0.0")
    api_port: int = int(os.environ.get("API_PORT", "8000"))

    def iteration_cap(self) -> Optional[int]:
        return self.max_iterations if self.max_iterations > 0 else None


CONFIG = Config()
