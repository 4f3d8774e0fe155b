"""
Job objects
"""

from typing import Optional

from .shell_pipeline import Pipeline


class Job:
    """A planned tool invocation"""

    def __init__(
        self,
        pipeline: Pipeline,
        name: str,
        threads: int = 1,
        save_label: Optional[str] = None,
    ):
        self.shell = pipeline
        self.name = name
        self.threads = threads
        self.save_label = save_label

    def __hash__(self):
        return hash(self.shell)

    def __eq__(self, other: object):
        if isinstance(other, Job):
            return self.shell == other.shell
        return False

    def __ne__(self, other: object):
        return not self == other

    def __repr__(self):
        return f"Job({self.name})"

    def __str__(self):
        return f"Job({self.name})"
