"""
Describe or plan a tumor/normal analysis
"""

import json
import pathlib
import sys
from typing import Any, Dict, Optional

from .exceptions import PlanError
from .executor import DryRunExecutor
from .graph import GraphSemantics, Node
from .parameters import run_directory, run_name
from .plan import PlanCompiler
from .pipeline import BasePipeline
from .workflow import Workflow


def summarize(node: Node) -> Dict[str, Any]:
    """A short description of a report node"""
    return {
        "kind": node.kind,
        "op": node.op,
        "save_label": node.save_label,
        "identity": node.identity,
    }


class DescribePipeline(BasePipeline):
    """Print what a run would compute"""

    params = dict(
        **BasePipeline.params,
        **{
            "graph": {
                "help": "Also print every node of the analysis graph.",
                "action": "store_true",
            },
        },
    )

    def __init__(self) -> None:
        super().__init__()
        self.graph = False

    def run(self) -> None:
        assert self.parameter_set
        params = self.parameter_set
        report = Workflow(GraphSemantics()).build_report(params)
        res: Dict[str, Any] = {
            "run_name": run_name(params),
            "run_directory": run_directory(params),
            "report": report.to_dict(render=summarize),
        }
        if self.graph:
            root = GraphSemantics().report(report)
            res["graph"] = [node.to_dict() for node in root.walk()]
        json.dump(res, sys.stdout, indent=2)
        sys.stdout.write("\n")


class PlanPipeline(BasePipeline):
    """Print the commands of a run in dependency order"""

    params = dict(
        **BasePipeline.params,
        **{
            "output": {
                "flags": ["-o", "--output"],
                "help": "Write the commands to a file instead of stdout.",
                "type": pathlib.Path,
            },
        },
    )

    def __init__(self) -> None:
        super().__init__()
        self.output: Optional[pathlib.Path] = None

    def run(self) -> None:
        assert self.parameter_set
        root = self.build_graph()
        compiler = PlanCompiler(
            self.run_dir,
            self.reference_root,
            self.parameter_set.reference_build,
            self.cores,
        )
        try:
            dag = compiler.compile(root)
        except PlanError as e:
            self.logger.error("Unable to plan the run: %s", e)
            sys.exit(1)

        if self.output:
            with open(self.output, "w") as fh:
                DryRunExecutor(dag, fh).execute()
        else:
            DryRunExecutor(dag).execute()
        self.logger.info(
            "Saved %s outputs under %s",
            len(compiler.saved),
            compiler.saved_dir,
        )

