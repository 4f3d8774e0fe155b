"""
A pipeline class
"""

from abc import ABC, abstractmethod
import argparse
import copy
import multiprocessing as mp
import pathlib
import sys
from typing import Any, Dict, List, Optional

from .exceptions import ParameterError
from .graph import GraphSemantics, Node
from .logging import get_logger, set_level
from .parameters import FLAGS, ParameterSet, run_directory
from .util import __version__, env_path, path_arg
from .workflow import Workflow


class BasePipeline(ABC):
    """A pipeline base class"""

    params: Dict[str, Dict[str, Any]] = {
        # Required arguments
        "parameters": {
            "flags": ["-p", "--parameters"],
            "required": True,
            "help": "JSON file with the parameters of the run.",
            "type": path_arg(exists=True, is_file=True),
        },
        # Overrides of the parameter file
        "experiment_name": {
            "flags": ["-e", "--experiment_name"],
            "help": "Override the experiment name.",
        },
        "reference_build": {
            "flags": ["-r", "--reference_build"],
            "help": "Override the reference build, e.g. b37, hg19 or mm10.",
        },
        "bedfile": {
            "flags": ["-b", "--bedfile"],
            "help": "Restrict the variant calls to the regions of a BED file.",
        },
        "mhc_alleles": {
            "nargs": "*",
            "help": (
                "MHC alleles of the patient. These take precedence over the "
                "alleles typed from the RNA."
            ),
        },
        "with_topiary": {
            "help": "Enable the Topiary report.",
            "action": "store_const",
            "const": True,
        },
        "with_seq2hla": {
            "help": "Type the MHC alleles of the RNA sample with Seq2HLA.",
            "action": "store_const",
            "const": True,
        },
        "with_mutect2": {
            "help": "Also call somatic variants with MuTect2.",
            "action": "store_const",
            "const": True,
        },
        "with_varscan": {
            "help": "Also call somatic variants with VarScan2.",
            "action": "store_const",
            "const": True,
        },
        "with_somaticsniper": {
            "help": "Also call somatic variants with SomaticSniper.",
            "action": "store_const",
            "const": True,
        },
        # Additional arguments
        "work_dir": {
            "flags": ["-w", "--work_dir"],
            "help": (
                "Parent of the run directories. Defaults to "
                "$EPIDISCO_WORK_DIR or the current directory."
            ),
            "type": pathlib.Path,
        },
        "reference_root": {
            "help": (
                "Directory holding one sub-directory per reference build. "
                "Defaults to $EPIDISCO_REFERENCE_ROOT or /references."
            ),
            "type": pathlib.Path,
        },
        "cores": {
            "flags": ["-t", "--cores"],
            "help": (
                "Number of threads/processes per job. Defaults to all "
                "available."
            ),
            "default": mp.cpu_count(),
        },
    }

    @classmethod
    def add_arguments(cls, parser: argparse.ArgumentParser):
        for k, spec in cls.params.items():
            kwargs = copy.copy(spec)
            flags = ["--" + k]
            if "default" in kwargs and "type" not in kwargs:
                kwargs["type"] = type(kwargs["default"])
            if "flags" in kwargs:
                flags = kwargs.pop("flags")
            parser.add_argument(*flags, dest=k, **kwargs)

    def handle_arguments(self, args: argparse.Namespace):
        """Update self using the argparse object"""
        for k in self.params.keys():
            assert k in self.__dict__
            if k in args.__dict__:
                val = getattr(args, k)
                if val is not None:
                    setattr(self, k, val)

    def setup_logging(self, args: argparse.Namespace) -> None:
        self.logger = get_logger(__name__)
        set_level(args.loglevel)
        self.logger.info("Starting epidisco-cli version: %s", __version__)

    def __init__(self) -> None:
        self.parameters: Optional[pathlib.Path] = None
        self.experiment_name: Optional[str] = None
        self.reference_build: Optional[str] = None
        self.bedfile: Optional[str] = None
        self.mhc_alleles: Optional[List[str]] = None
        self.with_topiary = False
        self.with_seq2hla = False
        self.with_mutect2 = False
        self.with_varscan = False
        self.with_somaticsniper = False
        self.work_dir = env_path("EPIDISCO_WORK_DIR", ".")
        self.reference_root = env_path(
            "EPIDISCO_REFERENCE_ROOT", "/references"
        )
        self.cores = mp.cpu_count()
        self.parameter_set: Optional[ParameterSet] = None

    def main(self, args: argparse.Namespace) -> None:
        """Run the pipeline"""
        self.handle_arguments(args)
        self.setup_logging(args)
        self.validate()
        self.run()

    def load_parameters(self) -> ParameterSet:
        """Read the parameter file and apply the command line overrides"""
        assert self.parameters
        overrides: Dict[str, Any] = {}
        for k in ("experiment_name", "reference_build", "bedfile"):
            if getattr(self, k) is not None:
                overrides[k] = getattr(self, k)
        if self.mhc_alleles is not None:
            overrides["mhc_alleles"] = self.mhc_alleles
        for k in FLAGS:
            if getattr(self, k):
                overrides[k] = True
        return ParameterSet.from_json(self.parameters, **overrides)

    def validate(self) -> None:
        try:
            self.parameter_set = self.load_parameters()
        except ParameterError as e:
            self.logger.error("Invalid parameters: %s", e)
            sys.exit(2)
        except ValueError as e:
            self.logger.error(
                "Unable to parse the parameter file %s: %s",
                self.parameters,
                e,
            )
            sys.exit(2)

    @property
    def run_dir(self) -> pathlib.Path:
        assert self.parameter_set
        return self.work_dir / run_directory(self.parameter_set)

    def build_graph(self) -> Node:
        """Build the analysis graph of the run"""
        assert self.parameter_set
        self.logger.info("Building the analysis graph")
        return Workflow(GraphSemantics()).run(self.parameter_set)

    @abstractmethod
    def run(self) -> None:
        pass
