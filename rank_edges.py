import argparse
import logging
import sys
from typing import List, Optional, Tuple

from linkrank.config import CONFIG
from linkrank.db import db_cursor, init_db, record_run, save_scores
from linkrank.edges import parse_edges, read_edges
from linkrank.graph import Pagerank, PagerankError, top_scores

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Rank the nodes of an edge list with PageRank.")
    parser.add_argument("input", nargs="?", default="-", help="edge file, '-' for stdin. Default: -")
    parser.add_argument("--delimiter", type=str, default="\t", help="field separator. Default: TAB")
    parser.add_argument("--damping", type=float, default=CONFIG.damping)
    parser.add_argument("--tolerance", type=float, default=CONFIG.tolerance)
    parser.add_argument(
        "--max-iter",
        type=int,
        default=CONFIG.max_iterations,
        help="iteration cap, 0 for none. Default: %(default)s",
    )
    parser.add_argument("--top", type=int, default=0, help="print only the N highest scores")
    parser.add_argument("--save", action="store_true", help="store the scores in the database")
    args = parser.parse_args(argv)

    if args.input == "-":
        edges = list(parse_edges(sys.stdin, delimiter=args.delimiter))
    else:
        edges = read_edges(args.input, delimiter=args.delimiter)

    graph = Pagerank()
    graph.link_many(edges)

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

    for label, score in top_scores(scores, args.top if args.top > 0 else None):
        print(f"{label}\t{score:.10f}")

    if args.save:
        init_db()
        with db_cursor(commit=True) as cur:
            save_scores(cur, scores)
            record_run(cur, args.damping, args.tolerance, iterations, len(graph), graph.edge_count)
        LOGGER.info("saved %s scores to %s", len(scores), CONFIG.db_path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
