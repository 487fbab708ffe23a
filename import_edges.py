import argparse
import logging
from typing import List, Optional

from tqdm import tqdm

from linkrank.db import count_links, db_cursor, init_db, insert_links
from linkrank.edges import fetch_edges, read_edges

logging.basicConfig(level=logging.INFO)
LOGGER = logging.getLogger(__name__)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Append edges from a file or URL to the link database.")
    parser.add_argument("input", nargs="?", default="", help="edge file, one 'source<TAB>target' per line")
    parser.add_argument("--url", type=str, default="", help="download the edge list from this URL instead")
    parser.add_argument("--delimiter", type=str, default="\t")
    parser.add_argument("--batch-size", type=int, default=1000, help="commit every N edges. Default: 1000")
    args = parser.parse_args(argv)

    if bool(args.input) == bool(args.url):
        parser.error("give exactly one of INPUT or --url")

    edges = fetch_edges(args.url, args.delimiter) if args.url else read_edges(args.input, args.delimiter)

    init_db()
    batch_size = max(args.batch_size, 1)
    inserted = 0
    with db_cursor(commit=True) as cur:
        for offset in tqdm(range(0, len(edges), batch_size), disable=len(edges) <= batch_size):
            inserted += insert_links(cur, edges[offset : offset + batch_size])
            cur.connection.commit()
        total = count_links(cur)

    LOGGER.info("imported edges: %s, total stored: %s", inserted, total)


if __name__ == "__main__":
    main()
