"""Shell command lines of the planned jobs"""

from __future__ import annotations

import pathlib
import shlex
from typing import Any, Iterable, List, Optional


class Command:
    """Represents a single command (e.g., 'gatk', 'samtools')."""

    def __init__(self, executable: str, *args: str) -> None:
        self.executable = executable
        self.args = [str(x) for x in args]

    def __str__(self) -> str:
        return shlex.join([self.executable] + self.args)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}({self.executable}, "
            + ", ".join([repr(x) for x in self.args])
            + ")"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Command):
            return NotImplemented
        return self.executable == other.executable and self.args == other.args

    def __hash__(self) -> int:
        return hash(tuple([self.executable] + self.args))


class Pipeline:
    """Represents a sequence of commands connected by pipes (|)."""

    def __init__(
        self,
        *nodes: Command,
        skip_pipe: Optional[Iterable[int]] = None,
        file_input: Optional[pathlib.Path] = None,
        file_output: Optional[pathlib.Path] = None,
    ):
        self.nodes = list(nodes)
        assert self.nodes  # Nodes cannot be empty
        self.skip_pipe = set(skip_pipe) if skip_pipe else set()
        self.file_input = file_input
        self.file_output = file_output

    def __str__(self) -> str:
        res = []
        if self.file_input:
            res.append(f"<'{self.file_input}' ")
        res.append(str(self.nodes[0]))
        for i, node in enumerate(self.nodes[1:]):
            if i in self.skip_pipe:
                res.append("; ")
            else:
                res.append(" | ")
            res.append(str(node))
        if self.file_output:
            res.append(f" >'{self.file_output}'")
        return "".join(res)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            + ", ".join(repr(x) for x in self.nodes)
            + f", skip_pipe={self.skip_pipe},file_input={self.file_input},"
            + f"file_output={self.file_output})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Pipeline):
            return NotImplemented
        return (
            self.nodes == other.nodes
            and self.skip_pipe == other.skip_pipe
            and self.file_input == other.file_input
            and self.file_output == other.file_output
        )

    def __hash__(self) -> int:
        attrs: List[Any] = self.nodes + [self.file_input, self.file_output]
        attrs.append(tuple(sorted(self.skip_pipe)))
        return hash(tuple(attrs))
