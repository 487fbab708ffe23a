import argparse
import logging
import sys
from typing import List, Optional, Tuple

from linkrank.config import CONFIG
from linkrank.db import build_graph, db_cursor, init_db, record_run, save_scores
from linkrank.graph import PagerankError

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Recompute PageRank for every stored link and save the scores.")
    parser.add_argument("--damping", type=float, default=CONFIG.damping)
    parser.add_argument("--tolerance", type=float, default=CONFIG.tolerance)
    parser.add_argument("--max-iter", type=int, default=CONFIG.max_iterations, help="0 for no cap")
    args = parser.parse_args(argv)

    init_db()
    with db_cursor(commit=True) as cur:
        graph = build_graph(cur)
        if len(graph) == 0:
            LOGGER.info("no links stored, nothing to rank")
            return 0
        scores: List[Tuple[str, float]] = []
        try:
            iterations = graph.rank(
                args.damping,
                args.tolerance,
                lambda label, score: scores.append((label, score)),
                max_iterations=args.max_iter if args.max_iter > 0 else None,
            )
        except PagerankError as exc:
            LOGGER.error("ranking failed: %s", exc)
            return 1
        save_scores(cur, scores)
        record_run(cur, args.damping, args.tolerance, iterations, len(graph), graph.edge_count)

    LOGGER.info("graph edges: %s, pagerank computed: %s", graph.edge_count, len(scores))
    return 0


if __name__ == "__main__":
    sys.exit(main())
