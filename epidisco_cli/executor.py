"""Walk the planned jobs"""

import sys
from typing import IO, List, Optional

from .dag import DAG
from .job import Job
from .logging import get_logger

logger = get_logger(__name__)


class BaseExecutor:
    """Visit the jobs of a DAG in dependency order"""

    def __init__(self, dag: DAG):
        self.dag = dag
        self.visited: List[Job] = []

    def run_job(self, job: Job) -> None:
        raise NotImplementedError

    def execute(self) -> None:
        """Visit every job once all of its dependencies were visited"""
        dag_gen = self.dag.update_dag()
        ready_jobs = dag_gen.send(None)

        while ready_jobs:
            # Sort for a reproducible order
            batch = sorted(
                ready_jobs, key=lambda job: (job.name, str(job.shell))
            )
            for job in batch:
                self.run_job(job)
                self.visited.append(job)
            ready_jobs = {
                new_job
                for finished_job in batch
                for new_job in dag_gen.send(finished_job)
            }

        if self.dag.waiting_jobs:
            logger.warning(
                "Jobs with unmet dependencies: %s", self.dag.waiting_jobs
            )


class DryRunExecutor(BaseExecutor):
    """Dry-run execution"""

    def __init__(self, dag: DAG, out: Optional[IO[str]] = None):
        super().__init__(dag)
        self.out = sys.stdout if out is None else out

    def run_job(self, job: Job) -> None:
        """Dry-run a job"""
        logger.debug("Dry-run: %s", job.name)
        print(f"# {job.name}", file=self.out)
        print(job.shell, file=self.out)
