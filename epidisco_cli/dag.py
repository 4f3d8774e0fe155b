"""
The planned jobs of a run and the order they can run in
"""

from __future__ import annotations

from typing import Dict, Generator, List, Optional, Set

from .exceptions import DagExecutionError, PlanError
from .job import Job
from .logging import get_logger

logger = get_logger(__name__)


class DAG:
    """A directed acyclic graph of jobs.

    Jobs are added after all of their dependencies, so the graph cannot
    contain a cycle. `update_dag` hands out the jobs whose dependencies have
    all finished.
    """

    def __init__(self) -> None:
        # waiting_jobs = {job: {unfinished dependencies}}
        self.waiting_jobs: Dict[Job, Set[Job]] = {}
        # downstream_jobs = {dependency: [jobs waiting on it]}
        self.downstream_jobs: Dict[Job, List[Job]] = {}
        self.upstream_jobs: Dict[Job, Set[Job]] = {}
        self.ready_jobs: Set[Job] = set()
        self.finished_jobs: List[Job] = []

    def __len__(self) -> int:
        return len(self.upstream_jobs)

    def __contains__(self, job: object) -> bool:
        return job in self.waiting_jobs or job in self.ready_jobs

    def jobs(self) -> List[Job]:
        """All jobs that have not finished"""
        return list(self.ready_jobs) + list(self.waiting_jobs)

    def dependencies(self, job: Job) -> Set[Job]:
        """The jobs `job` was planned to run after"""
        return set(self.upstream_jobs[job])

    def saved_jobs(self) -> List[Job]:
        return [job for job in self.upstream_jobs if job.save_label]

    def add_job(self, job: Job, dependencies: Optional[Set[Job]] = None):
        """Add a job to run once all of `dependencies` have finished"""
        if job in self.upstream_jobs:
            raise PlanError(f"Job '{job}' is already planned")
        deps = set(dependencies) if dependencies else set()
        for dependency in deps:
            if dependency not in self.upstream_jobs:
                raise PlanError(
                    f"Job '{job}' depends on the unplanned job '{dependency}'"
                )

        self.upstream_jobs[job] = deps
        pending = {x for x in deps if x not in self.finished_jobs}
        if not pending:
            self.ready_jobs.add(job)
            return
        self.waiting_jobs[job] = pending
        for dependency in pending:
            self.downstream_jobs.setdefault(dependency, []).append(job)

    def update_dag(
        self,
    ) -> Generator[Set[Job], Optional[Job], None]:
        """Send finished jobs, receive the jobs they made ready"""
        finished_job = yield self.ready_jobs.copy()

        while True:
            logger.debug("Newly finished: %s", finished_job)
            newly_ready: Set[Job] = set()
            if finished_job is not None:
                if finished_job not in self.ready_jobs:
                    raise DagExecutionError(
                        f"Finished job '{finished_job}' was not ready for "
                        "execution"
                    )
                self.ready_jobs.remove(finished_job)
                self.finished_jobs.append(finished_job)
                for job in self.downstream_jobs.pop(finished_job, []):
                    pending = self.waiting_jobs[job]
                    pending.discard(finished_job)
                    if not pending:
                        del self.waiting_jobs[job]
                        self.ready_jobs.add(job)
                        newly_ready.add(job)
            logger.debug("Waiting jobs: %s", len(self.waiting_jobs))
            finished_job = yield newly_ready
