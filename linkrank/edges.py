"""Reading ``source<delim>target`` edge lists from files, streams and URLs."""

import logging
from typing import Iterable, Iterator, List, Tuple

import requests

from .config import CONFIG

LOGGER = logging.getLogger(__name__)

Edge = Tuple[str, str]


def parse_edges(lines: Iterable[str], delimiter: str = "\t") -> Iterator[Edge]:
    """Yield ``(source, target)`` pairs.

    Blank lines are skipped. A line starting with ``#`` is a comment only when
    it holds no delimiter, so ``"#tag\\tb"`` still links ``#tag`` to ``b``.
    Empty fields are kept as empty labels, so ``"a\\t"`` is a link from ``a``
    to ``""``.
    """
    for lineno, line in enumerate(lines, start=1):
        line = line.rstrip("\r\n")
        if not line or (line.startswith("#") and delimiter not in line):
            continue
        parts = line.split(delimiter)
        if len(parts) != 2:
            raise ValueError(
                f"line {lineno}: expected 2 fields separated by {delimiter!r}, got {len(parts)}"
            )
        yield parts[0], parts[1]


def read_edges(path: str, delimiter: str = "\t") -> List[Edge]:
    with open(path, "r", encoding="utf-8") as fh:
        return list(parse_edges(fh, delimiter=delimiter))


def fetch_edges(url: str, delimiter: str = "\t") -> List[Edge]:
    resp = requests.get(
        url,
        headers={"User-Agent": "linkrank/0.1"},
        timeout=(CONFIG.request_timeout_connect, CONFIG.request_timeout_read),
    )
    resp.raise_for_status()
    edges = list(parse_edges(resp.text.splitlines(), delimiter=delimiter))
    LOGGER.info("fetched %s edges from %s", len(edges), url)
    return edges
