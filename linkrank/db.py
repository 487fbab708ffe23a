import os
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .config import CONFIG
from .graph import Pagerank


def ensure_db_dir(path: str) -> None:
    db_dir = os.path.dirname(path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)


def connect_db() -> sqlite3.Connection:
    ensure_db_dir(CONFIG.db_path)
    conn = sqlite3.connect(CONFIG.db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA synchronous=NORMAL")
    conn.execute("PRAGMA busy_timeout=3000")
    return conn


@contextmanager
def db_cursor(commit: bool = False):
    conn = connect_db()
    cur = conn.cursor()
    try:
        yield cur
        if commit:
            conn.commit()
    finally:
        cur.close()
        conn.close()


def init_db() -> None:
    with db_cursor(commit=True) as cur:
        # parallel edges are meaningful, so links carry no uniqueness constraint
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS links(
              id INTEGER PRIMARY KEY,
              source TEXT NOT NULL,
              target TEXT NOT NULL,
              ingested_at TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS scores(
              label TEXT PRIMARY KEY,
              score REAL,
              position INTEGER,
              updated_at TEXT
            )
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS rank_runs(
              id INTEGER PRIMARY KEY,
              damping REAL,
              tolerance REAL,
              iterations INTEGER,
              node_count INTEGER,
              edge_count INTEGER,
              created_at TEXT
            )
            """
        )


def now_utc() -> str:
    return datetime.now(timezone.utc).isoformat()


def insert_links(cur: sqlite3.Cursor, edges: Iterable[Tuple[str, str]]) -> int:
    ts = now_utc()
    inserted = 0
    for source, target in edges:
        cur.execute(
            "INSERT INTO links(source, target, ingested_at) VALUES(?,?,?)",
            (source, target, ts),
        )
        inserted += 1
    return inserted


def load_links(cur: sqlite3.Cursor) -> List[Tuple[str, str]]:
    rows = cur.execute("SELECT source, target FROM links ORDER BY id").fetchall()
    return [(row["source"], row["target"]) for row in rows]


def count_links(cur: sqlite3.Cursor) -> int:
    return cur.execute("SELECT COUNT(*) FROM links").fetchone()[0]


def count_nodes(cur: sqlite3.Cursor) -> int:
    return cur.execute(
        "SELECT COUNT(*) FROM (SELECT source AS label FROM links UNION SELECT target FROM links)"
    ).fetchone()[0]


def build_graph(cur: sqlite3.Cursor) -> Pagerank:
    graph = Pagerank()
    graph.link_many(load_links(cur))
    return graph


def save_scores(cur: sqlite3.Cursor, scores: Iterable[Tuple[str, float]]) -> int:
    ts = now_utc()
    cur.execute("DELETE FROM scores")
    saved = 0
    for position, (label, score) in enumerate(scores):
        cur.execute(
            "INSERT INTO scores(label, score, position, updated_at) VALUES(?,?,?,?)",
            (label, float(score), position, ts),
        )
        saved += 1
    return saved


def load_scores(cur: sqlite3.Cursor, limit: Optional[int] = None) -> List[Tuple[str, float]]:
    sql = "SELECT label, score FROM scores ORDER BY score DESC, position ASC"
    params: Tuple[Any, ...] = ()
    if limit is not None and limit > 0:
        sql += " LIMIT ?"
        params = (limit,)
    rows = cur.execute(sql, params).fetchall()
    return [(row["label"], row["score"]) for row in rows]


def record_run(
    cur: sqlite3.Cursor,
    damping: float,
    tolerance: float,
    iterations: int,
    node_count: int,
    edge_count: int,
) -> None:
    cur.execute(
        "INSERT INTO rank_runs(damping, tolerance, iterations, node_count, edge_count, created_at) "
        "VALUES(?,?,?,?,?,?)",
        (damping, tolerance, iterations, node_count, edge_count, now_utc()),
    )


def last_run(cur: sqlite3.Cursor) -> Optional[Dict[str, Any]]:
    row = cur.execute(
        "SELECT damping, tolerance, iterations, node_count, edge_count, created_at "
        "FROM rank_runs ORDER BY id DESC LIMIT 1"
    ).fetchone()
    return dict(row) if row else None
