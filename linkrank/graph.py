import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

ResultFunc = Callable[[str, float], None]


class PagerankError(Exception):
    pass


class EmptyGraphError(PagerankError):
    pass


class InvalidParameterError(PagerankError, ValueError):
    pass


class ConvergenceError(PagerankError):
    def __init__(self, iterations: int, delta: float) -> None:
        super().__init__(f"no convergence after {iterations} iterations (delta={delta:.3e})")
        self.iterations = iterations
        self.delta = delta


class Pagerank:
    """Incremental link graph with a power-method PageRank solver.

    Labels are interned to dense indices in first-seen order. For each node
    the graph keeps the list of sources linking to it (parallel edges stay as
    repeated entries) and the number of edges leaving it.
    """

    def __init__(self) -> None:
        self._keymap: Dict[str, int] = {}
        self._labels: List[str] = []
        self._incoming: List[List[int]] = []
        self._out_degree: List[int] = []
        self._edge_count = 0

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._keymap

    def len(self) -> int:
        return len(self._labels)

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self._labels)

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def index_of(self, label: str) -> int:
        return self._keymap[label]

    def label_of(self, index: int) -> str:
        return self._labels[index]

    def out_degree(self, label: str) -> int:
        return self._out_degree[self._keymap[label]]

    def in_degree(self, label: str) -> int:
        return len(self._incoming[self._keymap[label]])

    def sources(self, label: str) -> Tuple[str, ...]:
        """Labels linking to ``label``, once per recorded edge."""
        return tuple(self._labels[j] for j in self._incoming[self._keymap[label]])

    def add_node(self, label: str) -> int:
        return self._intern(label)

    def link(self, source: str, target: str) -> None:
        from_index = self._intern(source)
        to_index = self._intern(target)
        self._incoming[to_index].append(from_index)
        self._out_degree[from_index] += 1
        self._edge_count += 1

    def link_many(self, pairs: Iterable[Tuple[str, str]]) -> int:
        count = 0
        for source, target in pairs:
            self.link(source, target)
            count += 1
        return count

    def _intern(self, label: str) -> int:
        index = self._keymap.get(label)
        if index is None:
            index = len(self._labels)
            self._labels.append(label)
            self._keymap[label] = index
            self._incoming.append([])
            self._out_degree.append(0)
        return index

    def rank(
        self,
        damping: float,
        tolerance: float,
        on_result: ResultFunc,
        max_iterations: Optional[int] = None,
    ) -> int:
        """Run power iteration until the L1 change drops below ``tolerance``.

        ``on_result(label, score)`` is called once per node, in index order,
        only after convergence. Returns the number of iterations performed.
        ``max_iterations`` bounds the loop; hitting it raises
        ``ConvergenceError`` without reporting any score.
        """
        size = len(self._labels)
        if size == 0:
            raise EmptyGraphError("cannot rank an empty graph")
        _check_params(damping, tolerance, max_iterations)

        teleport = (1.0 - damping) / size
        dangling = [i for i, links in enumerate(self._out_degree) if links == 0]
        result = [1.0 / size] * size

        iterations = 0
        delta = math.inf
        while delta >= tolerance:
            if max_iterations is not None and iterations >= max_iterations:
                LOGGER.warning(
                    "pagerank stopped at iteration cap: nodes=%s iterations=%s delta=%.3e",
                    size,
                    iterations,
                    delta,
                )
                raise ConvergenceError(iterations, delta)
            new_result = self._step(damping, teleport, dangling, result)
            delta = _l1_distance(result, new_result)
            result = new_result
            iterations += 1
            LOGGER.debug("pagerank iteration %s delta=%.3e", iterations, delta)

        LOGGER.info(
            "pagerank converged: nodes=%s edges=%s iterations=%s delta=%.3e",
            size,
            self._edge_count,
            iterations,
            delta,
        )
        for index, score in enumerate(result):
            on_result(self._labels[index], score)
        return iterations

    def scores(
        self,
        damping: float = 0.85,
        tolerance: float = 1e-6,
        max_iterations: Optional[int] = None,
    ) -> Dict[str, float]:
        out: Dict[str, float] = {}

        def _collect(label: str, score: float) -> None:
            out[label] = score

        self.rank(damping, tolerance, _collect, max_iterations=max_iterations)
        return out

    def _step(
        self,
        damping: float,
        teleport: float,
        dangling: List[int],
        result: List[float],
    ) -> List[float]:
        size = len(result)
        dangling_mass = sum(result[i] for i in dangling) / size
        out_degree = self._out_degree

        new_result = [0.0] * size
        total = 0.0
        for i, sources in enumerate(self._incoming):
            incoming_sum = 0.0
            for j in sources:
                incoming_sum += result[j] / out_degree[j]
            value = damping * (incoming_sum + dangling_mass) + teleport
            new_result[i] = value
            total += value

        for i in range(size):
            new_result[i] /= total
        return new_result


def _check_params(damping: float, tolerance: float, max_iterations: Optional[int]) -> None:
    # comparisons are written so that NaN fails them
    if not 0.0 < damping < 1.0:
        raise InvalidParameterError(f"damping must be in (0, 1), got {damping!r}")
    if not tolerance > 0.0:
        raise InvalidParameterError(f"tolerance must be positive, got {tolerance!r}")
    if max_iterations is not None and max_iterations <= 0:
        raise InvalidParameterError(f"max_iterations must be positive, got {max_iterations!r}")


def _l1_distance(result: List[float], new_result: List[float]) -> float:
    acc = 0.0
    for old, new in zip(result, new_result):
        acc += abs(old - new)
    return acc


def top_scores(scores: List[Tuple[str, float]], top: Optional[int]) -> List[Tuple[str, float]]:
    if top is None:
        return list(scores)
    # sorted() is stable, ties keep index order
    return sorted(scores, key=lambda item: item[1], reverse=True)[:top]


def pagerank(
    nodes: Iterable[str],
    edges: Dict[str, List[str]],
    damping: float = 0.85,
    tolerance: float = 1e-6,
    max_iterations: Optional[int] = None,
) -> Dict[str, float]:
    graph = Pagerank()
    for node in nodes:
        graph.add_node(node)
    for src, outs in edges.items():
        for dst in outs:
            graph.link(src, dst)
    if len(graph) == 0:
        return {}
    return graph.scores(damping, tolerance, max_iterations=max_iterations)
