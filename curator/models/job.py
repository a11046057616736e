"""
Job domain model

A Job is immutable once enqueued. The only thing written afterwards is a
terminal JobStatusRecord, stored separately with a TTL.
"""
import json
from dataclasses import dataclass, field, replace, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from curator.utils.datetime_utils import parse_datetime, utcnow
from curator.utils.id_generator import generate_id


class JobPriority(str, Enum):
    HIGH = 'high'
    NORMAL = 'normal'
    LOW = 'low'


# Dequeue order: high is drained completely before normal, normal before low
PRIORITY_ORDER = (JobPriority.HIGH, JobPriority.NORMAL, JobPriority.LOW)


class JobStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    UNKNOWN = 'unknown'


TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class Job:
    """
    Unit of deferred work.

    `payload` is opaque to the queue. `attempts` counts executions handed out
    by the queue; jobs are attempted at most `max_attempts` times and a
    failure is terminal (see JobQueue).
    """
    id: str
    queue_name: str
    payload: Dict[str, Any]
    priority: JobPriority = JobPriority.NORMAL
    created_at: datetime = field(default_factory=utcnow)
    attempts: int = 0
    max_attempts: int = 1

    def __post_init__(self):
        if self.attempts > self.max_attempts:
            raise ValueError(
                f"Job {self.id}: attempts ({self.attempts}) exceeds max_attempts ({self.max_attempts})"
            )

    @classmethod
    def create(cls, queue_name: str, payload: Dict[str, Any],
               priority: JobPriority = JobPriority.NORMAL) -> 'Job':
        return cls(
            id=generate_id('job'),
            queue_name=queue_name,
            payload=dict(payload),
            priority=JobPriority(priority),
        )

    def next_attempt(self) -> 'Job':
        """Copy of this job recording one more execution"""
        return replace(self, attempts=self.attempts + 1)

    def to_json(self) -> str:
        data = asdict(self)
        data['priority'] = self.priority.value
        data['created_at'] = self.created_at.isoformat()
        return json.dumps(data)

    @classmethod
    def from_json(cls, raw: str) -> 'Job':
        data = json.loads(raw)
        return cls(
            id=data['id'],
            queue_name=data['queue_name'],
            payload=data.get('payload') or {},
            priority=JobPriority(data.get('priority', 'normal')),
            created_at=parse_datetime(data.get('created_at')) or utcnow(),
            attempts=int(data.get('attempts', 0)),
            max_attempts=int(data.get('max_attempts', 1)),
        )


@dataclass(frozen=True)
class FollowUpJob:
    """Job a pipeline asks the worker to enqueue once it has succeeded"""
    queue_name: str
    payload: Dict[str, Any]
    priority: JobPriority = JobPriority.LOW


@dataclass
class JobResult:
    """
    Outcome of a pipeline run

    `detail` becomes the completed status record's detail; `follow_ups` are
    enqueued by the worker before the job is marked completed.
    """
    detail: Dict[str, Any] = field(default_factory=dict)
    follow_ups: List[FollowUpJob] = field(default_factory=list)


@dataclass
class JobStatusRecord:
    """Terminal (or derived) status of a job as reported to callers"""
    job_id: str
    status: JobStatus
    detail: Optional[Any] = None
    timestamp: Optional[datetime] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_json(self) -> str:
        return json.dumps({
            'job_id': self.job_id,
            'status': self.status.value,
            'detail': self.detail,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        })

    @classmethod
    def from_json(cls, raw: str) -> 'JobStatusRecord':
        data = json.loads(raw)
        return cls(
            job_id=data['job_id'],
            status=JobStatus(data['status']),
            detail=data.get('detail'),
            timestamp=parse_datetime(data.get('timestamp')),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {'status': self.status.value}
        if self.detail is not None:
            result['detail'] = self.detail
        return result
