import logging
import time
from typing import List, Optional, Tuple

from fastapi import FastAPI, HTTPException

from .config import CONFIG
from .db import (
    build_graph,
    count_links,
    count_nodes,
    db_cursor,
    init_db,
    insert_links,
    last_run,
    load_scores,
    record_run,
    save_scores,
)
from .graph import ConvergenceError, EmptyGraphError, InvalidParameterError, top_scores
from .models import (
    HealthResponse,
    LinkRequest,
    LinkResponse,
    RankRequest,
    RankResponse,
    ScoreItem,
    ScoresResponse,
    StatsResponse,
)

LOGGER = logging.getLogger(__name__)

app = FastAPI(title="linkrank")


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(ok=True, status="ok")


@app.post("/links", response_model=LinkResponse)
def add_links(req: LinkRequest) -> LinkResponse:
    with db_cursor(commit=True) as cur:
        inserted = insert_links(cur, ((e.source, e.target) for e in req.edges))
        edges = count_links(cur)
        nodes = count_nodes(cur)
    LOGGER.info("links inserted=%s total_edges=%s nodes=%s", inserted, edges, nodes)
    return LinkResponse(inserted=inserted, nodes=nodes, edges=edges)


@app.get("/stats", response_model=StatsResponse)
def stats() -> StatsResponse:
    with db_cursor() as cur:
        return StatsResponse(nodes=count_nodes(cur), edges=count_links(cur), last_run=last_run(cur))


@app.post("/rank", response_model=RankResponse)
def rank(req: RankRequest) -> RankResponse:
    damping = CONFIG.damping if req.damping is None else req.damping
    tolerance = CONFIG.tolerance if req.tolerance is None else req.tolerance
    if req.max_iterations is None:
        max_iterations = CONFIG.iteration_cap()
    else:
        # same rule as PAGERANK_MAX_ITER: 0 or less means no cap
        max_iterations = req.max_iterations if req.max_iterations > 0 else None
    persist = CONFIG.persist_scores if req.persist is None else req.persist

    start = time.time()
    with db_cursor(commit=True) as cur:
        graph = build_graph(cur)
        scores: List[Tuple[str, float]] = []
        try:
            iterations = graph.rank(
                damping,
                tolerance,
                lambda label, score: scores.append((label, score)),
                max_iterations=max_iterations,
            )
        except EmptyGraphError as exc:
            raise HTTPException(status_code=409, detail=str(exc))
        except InvalidParameterError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        except ConvergenceError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        if persist:
            save_scores(cur, scores)
            record_run(cur, damping, tolerance, iterations, len(graph), graph.edge_count)
    LOGGER.info(
        "rank nodes=%s iterations=%s persist=%s elapsed=%.3fs",
        len(graph),
        iterations,
        persist,
        time.time() - start,
    )

    results = top_scores(scores, req.top)
    return RankResponse(
        results=[ScoreItem(label=label, score=score) for label, score in results],
        iterations=iterations,
        nodes=len(graph),
        edges=graph.edge_count,
    )


@app.get("/scores", response_model=ScoresResponse)
def scores(limit: Optional[int] = None) -> ScoresResponse:
    with db_cursor() as cur:
        rows = load_scores(cur, limit=limit)
    return ScoresResponse(results=[ScoreItem(label=label, score=score) for label, score in rows])
