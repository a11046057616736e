"""
Workers - poll a queue, run one pipeline per job
"""
from .worker_base import BaseWorker, WorkerState
from .content_worker import ContentWorker
from .cluster_summary_worker import ClusterSummaryWorker
from .manager import WorkerManager

__all__ = [
    'BaseWorker',
    'WorkerState',
    'ContentWorker',
    'ClusterSummaryWorker',
    'WorkerManager',
]
