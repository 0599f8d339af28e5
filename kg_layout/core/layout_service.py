"""Layout service: the public entry points of the layout engine.

Every entry point runs the same pipeline:

    payload -> GraphData -> MultiDiGraph -> select_layout -> engine
            -> postprocess (simulation families) -> LayoutResult

Failures never propagate out of ``compute_layout`` / ``run_layout``: invalid
payloads, cancellation and internal faults are logged and produce an empty
result. Only ``compute_layout_with_timeout`` raises, with LayoutTimeoutError,
so callers can retry with the recommended cheaper layout.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import networkx as nx
import numpy as np
from pydantic import ValidationError

from kg_layout.config.settings import get_setting
from kg_layout.converters.graph_converter import (
    GraphConverter,
    apply_positions_to_graph,
    graph_summary,
)
from kg_layout.layout.cancellation import (
    CancellationToken,
    LayoutCancelledError,
    LayoutTimeoutError,
)
from kg_layout.layout.engines import get_engine
from kg_layout.layout.postprocess import postprocess
from kg_layout.layout.selector import select_layout
from kg_layout.models.graph import GraphData
from kg_layout.models.layout_metadata import (
    LayoutFamily,
    LayoutPlan,
    LayoutResult,
    NodePosition,
)

logger = logging.getLogger(__name__)

GraphInput = Union[GraphData, Dict[str, Any], None]
PositionMap = Dict[str, Dict[str, float]]

TIMEOUT_RECOMMENDATION = LayoutFamily.GRID.value

_converter = GraphConverter()


@dataclass
class LayoutJob:
    """A validated request, ready to hand to an engine."""

    requested: str
    plan: LayoutPlan
    graph: nx.MultiDiGraph
    width: float
    height: float

    @property
    def runs_async(self) -> bool:
        """Very large graphs take the yielding path instead of a worker thread."""
        return self.plan.family is LayoutFamily.LARGE_GRAPH


def _positive_number(*candidates: Any, fallback: float) -> float:
    """First candidate that is a finite positive number, else ``fallback``."""
    for value in candidates:
        if value is None:
            continue
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if math.isfinite(number) and number > 0:
            return number
    return fallback


def _resolve_min_distance(min_distance: Optional[float]) -> float:
    if min_distance is None:
        min_distance = get_setting('min_distance')
    try:
        number = float(min_distance)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number > 0 else 0.0


def prepare_job(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    min_distance: Optional[float] = None,
) -> Optional[LayoutJob]:
    """Validate the payload and select the layout.

    Returns:
        LayoutJob, or None when the graph has no nodes

    Raises:
        pydantic.ValidationError: If the payload is malformed
    """
    graph_data = GraphData.from_payload(graph)
    if not graph_data.nodes:
        return None

    target_w = _positive_number(width, graph_data.width, fallback=get_setting('default_width'))
    target_h = _positive_number(height, graph_data.height, fallback=get_setting('default_height'))

    nx_graph = _converter.to_networkx(graph_data)
    plan = select_layout(
        layout_name,
        nx_graph.number_of_nodes(),
        target_w,
        target_h,
        min_distance=_resolve_min_distance(min_distance),
    )

    return LayoutJob(
        requested=plan.requested or "balanced",
        plan=plan,
        graph=nx_graph,
        width=target_w,
        height=target_h,
    )


def _finish(job: LayoutJob, raw: Dict[str, Any], started: float) -> LayoutResult:
    config = job.plan.config
    if job.plan.family.is_simulation:
        raw = postprocess(
            raw, job.width, job.height, padding=config.padding, min_distance=config.min_distance
        )

    nodes, edges, dropped = graph_summary(job.graph)
    return LayoutResult(
        family=job.plan.family,
        requested_layout=job.requested,
        positions={node_id: NodePosition(x=x, y=y) for node_id, (x, y) in raw.items()},
        node_count=nodes,
        edge_count=edges,
        dropped_edge_count=dropped,
        width=job.width,
        height=job.height,
        elapsed_ms=(time.perf_counter() - started) * 1000,
    )


def _log_start(job: LayoutJob) -> None:
    nodes, edges, dropped = graph_summary(job.graph)
    note = " (narrowed for graph size)" if job.plan.narrowed else ""
    logger.info(
        f"Layout '{job.requested}' -> {job.plan.family.value}{note}: "
        f"{nodes} nodes, {edges} edges, {dropped} dropped"
    )


def execute_job(
    job: LayoutJob,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> LayoutResult:
    """Run a prepared job synchronously. Engine errors propagate."""
    started = time.perf_counter()
    _log_start(job)
    engine = get_engine(job.plan.family)
    raw = engine.layout(
        job.graph, job.plan.config, rng=np.random.default_rng(seed), cancel_token=cancel_token
    )
    return _finish(job, raw, started)


async def execute_job_async(
    job: LayoutJob,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
) -> LayoutResult:
    """Run a prepared job on the event loop. Engine errors propagate."""
    started = time.perf_counter()
    _log_start(job)
    engine = get_engine(job.plan.family)
    raw = await engine.layout_async(
        job.graph, job.plan.config, rng=np.random.default_rng(seed), cancel_token=cancel_token
    )
    return _finish(job, raw, started)


def _requested_name(layout_name: Any) -> str:
    return layout_name if isinstance(layout_name, str) and layout_name else "balanced"


def run_layout(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
) -> LayoutResult:
    """Compute a layout and return positions with metadata.

    Args:
        graph: GraphData or dict {nodes, edges, width?, height?}
        layout_name: Canonical name or alias; unknown names mean balanced
        width: Target width (defaults to the graph's, then the setting)
        height: Target height (defaults to the graph's, then the setting)
        seed: Seed for engines that start from random positions
        cancel_token: Optional token polled by iterative engines
        min_distance: Minimum node separation after fitting (None = setting)

    Returns:
        LayoutResult; empty when the graph is empty, invalid, cancelled,
        or an internal error occurred
    """
    requested = _requested_name(layout_name)
    try:
        job = prepare_job(graph, layout_name, width, height, min_distance=min_distance)
        if job is None:
            return LayoutResult.empty(requested)
        return execute_job(job, seed=seed, cancel_token=cancel_token)
    except ValidationError as e:
        logger.warning(f"Invalid graph payload for layout '{requested}': {e}")
    except LayoutCancelledError as e:
        logger.warning(str(e))
    except Exception as e:
        logger.error(f"Layout '{requested}' failed: {e}", exc_info=True)
    return LayoutResult.empty(requested)


async def run_layout_async(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
) -> LayoutResult:
    """Async variant of run_layout; very large graphs yield to the event loop."""
    requested = _requested_name(layout_name)
    try:
        job = prepare_job(graph, layout_name, width, height, min_distance=min_distance)
        if job is None:
            return LayoutResult.empty(requested)
        return await execute_job_async(job, seed=seed, cancel_token=cancel_token)
    except ValidationError as e:
        logger.warning(f"Invalid graph payload for layout '{requested}': {e}")
    except LayoutCancelledError as e:
        logger.warning(str(e))
    except Exception as e:
        logger.error(f"Layout '{requested}' failed: {e}", exc_info=True)
    return LayoutResult.empty(requested)


def _guarded_execute(job: LayoutJob, seed: Optional[int], token: CancellationToken) -> LayoutResult:
    try:
        return execute_job(job, seed=seed, cancel_token=token)
    except LayoutCancelledError as e:
        logger.debug(str(e))
    except Exception as e:
        logger.error(f"Layout '{job.requested}' failed: {e}", exc_info=True)
    return LayoutResult.empty(job.requested)


async def run_layout_with_timeout(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
    timeout: Optional[float] = None,
) -> LayoutResult:
    """run_layout under a wall-clock budget.

    Small and medium graphs run in the default executor; very large graphs
    run the yielding fallback on the event loop. On timeout the cancellation
    token is set, so the abandoned computation stops at its next checkpoint.
    Numeric strings are accepted as the timeout; anything that is not a
    positive number falls back to the 'layout_timeout_seconds' setting.

    Raises:
        LayoutTimeoutError: If the budget is exceeded
    """
    timeout = _positive_number(timeout, fallback=get_setting('layout_timeout_seconds'))

    requested = _requested_name(layout_name)
    try:
        job = prepare_job(graph, layout_name, width, height, min_distance=min_distance)
    except ValidationError as e:
        logger.warning(f"Invalid graph payload for layout '{requested}': {e}")
        return LayoutResult.empty(requested)
    if job is None:
        return LayoutResult.empty(requested)

    token = cancel_token if cancel_token is not None else CancellationToken()

    if job.runs_async:
        work = _guarded_execute_async(job, seed, token)
    else:
        loop = asyncio.get_event_loop()
        work = loop.run_in_executor(None, _guarded_execute, job, seed, token)

    try:
        return await asyncio.wait_for(work, timeout=timeout)
    except asyncio.TimeoutError:
        token.cancel()
        logger.warning(
            f"Layout '{requested}' ({job.plan.family.value}) timed out after {timeout:g}s"
        )
        raise LayoutTimeoutError(requested, timeout, recommendation=TIMEOUT_RECOMMENDATION)
    except asyncio.CancelledError:
        token.cancel()
        raise


async def _guarded_execute_async(
    job: LayoutJob, seed: Optional[int], token: CancellationToken
) -> LayoutResult:
    try:
        return await execute_job_async(job, seed=seed, cancel_token=token)
    except LayoutCancelledError as e:
        logger.debug(str(e))
    except Exception as e:
        logger.error(f"Layout '{job.requested}' failed: {e}", exc_info=True)
    return LayoutResult.empty(job.requested)


def compute_layout(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
) -> PositionMap:
    """Compute positions for every node: ``{node_id: {"x": .., "y": ..}}``.

    Never raises; returns ``{}`` for empty or invalid input and on failure.
    """
    return run_layout(
        graph, layout_name, width, height,
        seed=seed, cancel_token=cancel_token, min_distance=min_distance,
    ).position_map()


async def compute_layout_async(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
) -> PositionMap:
    """Async variant of compute_layout."""
    result = await run_layout_async(
        graph, layout_name, width, height,
        seed=seed, cancel_token=cancel_token, min_distance=min_distance,
    )
    return result.position_map()


async def compute_layout_with_timeout(
    graph: GraphInput,
    layout_name: Optional[str] = "balanced",
    width: Optional[float] = None,
    height: Optional[float] = None,
    *,
    seed: Optional[int] = None,
    cancel_token: Optional[CancellationToken] = None,
    min_distance: Optional[float] = None,
    timeout: Optional[float] = None,
) -> PositionMap:
    """compute_layout under a wall-clock budget.

    Raises:
        LayoutTimeoutError: If the budget is exceeded; its ``recommendation``
            names a cheaper layout to retry with
    """
    result = await run_layout_with_timeout(
        graph, layout_name, width, height,
        seed=seed, cancel_token=cancel_token, min_distance=min_distance, timeout=timeout,
    )
    return result.position_map()


__all__ = [
    "LayoutJob",
    "PositionMap",
    "prepare_job",
    "execute_job",
    "execute_job_async",
    "run_layout",
    "run_layout_async",
    "run_layout_with_timeout",
    "compute_layout",
    "compute_layout_async",
    "compute_layout_with_timeout",
    "apply_positions_to_graph",
]
