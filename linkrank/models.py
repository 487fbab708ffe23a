from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, validator


class Edge(BaseModel):
    source: str
    target: str


class LinkRequest(BaseModel):
    edges: List[Edge] = Field(default_factory=list)


class LinkResponse(BaseModel):
    inserted: int
    nodes: int
    edges: int


class RankRequest(BaseModel):
    damping: Optional[float] = None
    tolerance: Optional[float] = None
    max_iterations: Optional[int] = None
    top: Optional[int] = None
    persist: Optional[bool] = None

    @validator("top")
    def _valid_top(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v <= 0:
            raise ValueError("top must be positive")
        return v


class ScoreItem(BaseModel):
    label: str
    score: float


class RankResponse(BaseModel):
    results: List[ScoreItem]
    iterations: int
    nodes: int
    edges: int


class ScoresResponse(BaseModel):
    results: List[ScoreItem]


class StatsResponse(BaseModel):
    nodes: int
    edges: int
    last_run: Optional[Dict[str, Any]] = None


class HealthResponse(BaseModel):
    ok: bool
    status: str
