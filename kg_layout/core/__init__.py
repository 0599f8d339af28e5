"""
Core Layer - public entry points of the layout engine.

Modules:
- layout_service: validation, selection, engine dispatch, post-processing
  and the timeout wrapper
"""

from .layout_service import (
    LayoutJob,
    PositionMap,
    apply_positions_to_graph,
    compute_layout,
    compute_layout_async,
    compute_layout_with_timeout,
    execute_job,
    execute_job_async,
    prepare_job,
    run_layout,
    run_layout_async,
    run_layout_with_timeout,
)

__all__ = [
    'LayoutJob',
    'PositionMap',
    'prepare_job',
    'execute_job',
    'execute_job_async',
    'run_layout',
    'run_layout_async',
    'run_layout_with_timeout',
    'compute_layout',
    'compute_layout_async',
    'compute_layout_with_timeout',
    'apply_positions_to_graph',
]
