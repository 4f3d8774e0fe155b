"""
The parameters describing one tumor/normal run
"""

from __future__ import annotations

import dataclasses
import json
import pathlib
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import (
    InputFormatError,
    MissingExperimentNameError,
    MissingReferenceBuildError,
    MissingSampleError,
)
from .logging import get_logger

logger = get_logger(__name__)

NO_RNA = "noRNA"

FLAGS = (
    "with_topiary",
    "with_seq2hla",
    "with_mutect2",
    "with_varscan",
    "with_somaticsniper",
)


class Fragment:
    """One sequencing fragment of a sample"""

    description = "Fragment"

    def __init__(self, fragment_id: Optional[str] = None):
        self.fragment_id = fragment_id

    def __eq__(self, other: object) -> bool:
        if type(self) is not type(other):
            return NotImplemented
        return self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        attrs = tuple(sorted(self.__dict__.items()))
        return hash((type(self).__name__, attrs))

    def __repr__(self) -> str:
        attrs = ", ".join(f"{k}={v!r}" for k, v in self.__dict__.items())
        return f"{self.__class__.__name__}({attrs})"

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


class PairedEndFastq(Fragment):
    description = "Paired-end FASTQ"

    def __init__(self, r1: str, r2: str, fragment_id: Optional[str] = None):
        super().__init__(fragment_id)
        self.r1 = r1
        self.r2 = r2

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "PE",
            "r1": self.r1,
            "r2": self.r2,
            "fragment_id": self.fragment_id,
        }


class SingleEndFastq(Fragment):
    description = "Single-end FASTQ"

    def __init__(self, r: str, fragment_id: Optional[str] = None):
        super().__init__(fragment_id)
        self.r = r

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "SE", "r": self.r, "fragment_id": self.fragment_id}


class BamFragment(Fragment):
    """Reads to be re-extracted from an existing BAM"""

    pairing = ""

    def __init__(
        self,
        path: str,
        sorting: Optional[str] = None,
        reference_build: Optional[str] = None,
        fragment_id: Optional[str] = None,
    ):
        super().__init__(fragment_id)
        self.path = path
        self.sorting = sorting
        self.reference_build = reference_build

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "bam",
            "pairing": self.pairing,
            "path": self.path,
            "sorting": self.sorting,
            "reference_build": self.reference_build,
            "fragment_id": self.fragment_id,
        }


class PairedEndFromBam(BamFragment):
    description = "Paired-end-from-bam"
    pairing = "PE"


class SingleEndFromBam(BamFragment):
    description = "Single-end-from-bam"
    pairing = "SE"


def fragment_from_dict(d: Dict[str, Any]) -> Fragment:
    """Parse one fragment description"""
    kind = d.get("kind")
    fragment_id = d.get("fragment_id")
    try:
        if kind == "PE":
            return PairedEndFastq(d["r1"], d["r2"], fragment_id)
        if kind == "SE":
            return SingleEndFastq(d["r"], fragment_id)
        if kind == "bam":
            cls = {"PE": PairedEndFromBam, "SE": SingleEndFromBam}.get(
                d.get("pairing", "")
            )
            if cls is None:
                raise InputFormatError(
                    f"Unknown BAM pairing {d.get('pairing')!r}, "
                    "expected 'PE' or 'SE'"
                )
            return cls(
                d["path"],
                sorting=d.get("sorting"),
                reference_build=d.get("reference_build"),
                fragment_id=fragment_id,
            )
    except KeyError as e:
        raise InputFormatError(
            f"Fragment of kind {kind!r} is missing the key {e}"
        ) from e
    raise InputFormatError(
        f"Unknown fragment kind {kind!r}, expected 'PE', 'SE' or 'bam'"
    )


class SampleInput:
    """The sequencing data of one sample"""

    def __init__(self, sample_name: str, fragments: List[Fragment]):
        self.sample_name = sample_name
        self.fragments = tuple(fragments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SampleInput):
            return NotImplemented
        return (
            self.sample_name == other.sample_name
            and self.fragments == other.fragments
        )

    def __hash__(self) -> int:
        return hash((self.sample_name, self.fragments))

    def __repr__(self) -> str:
        return f"SampleInput({self.sample_name!r}, {list(self.fragments)!r})"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> SampleInput:
        if "sample_name" not in d:
            raise InputFormatError("A sample input requires a 'sample_name'")
        return cls(
            d["sample_name"],
            [fragment_from_dict(f) for f in d.get("fragments", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sample_name": self.sample_name,
            "fragments": [f.to_dict() for f in self.fragments],
        }

    def describe(self) -> str:
        """A human readable summary of the input"""
        if not self.fragments:
            summary = "NONE"
        elif len(self.fragments) == 1:
            summary = f"1 fragment: {self.fragments[0].description}"
        else:
            first = self.fragments[0]
            if all(type(f) is type(first) for f in self.fragments[1:]):
                kinds = f"all {first.description}"
            else:
                kinds = "heterogeneous"
            summary = f"{len(self.fragments)} fragments: {kinds}"
        return f"{self.sample_name}, {summary}"


@dataclasses.dataclass(frozen=True)
class ParameterSet:
    """The full configuration of one run"""

    experiment_name: str
    reference_build: str
    normal: SampleInput
    tumor: SampleInput
    rna: Optional[SampleInput] = None
    # Explicit alleles take precedence over RNA allele typing
    mhc_alleles: Optional[Tuple[str, ...]] = None
    bedfile: Optional[str] = None
    with_topiary: bool = False
    with_seq2hla: bool = False
    with_mutect2: bool = False
    with_varscan: bool = False
    with_somaticsniper: bool = False

    def __post_init__(self) -> None:
        if not self.experiment_name:
            raise MissingExperimentNameError()
        if not self.reference_build:
            raise MissingReferenceBuildError()
        if self.normal is None:
            raise MissingSampleError("normal")
        if self.tumor is None:
            raise MissingSampleError("tumor")
        if self.mhc_alleles is not None:
            object.__setattr__(self, "mhc_alleles", tuple(self.mhc_alleles))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> ParameterSet:
        """Build a parameter set from a JSON-like dictionary"""
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = set(d) - known
        if unknown:
            logger.warning("Ignoring unknown parameters: %s", sorted(unknown))
        kwargs = {k: v for k, v in d.items() if k in known}
        _check_types(kwargs)
        for sample in ("normal", "tumor", "rna"):
            if kwargs.get(sample) is not None:
                kwargs[sample] = SampleInput.from_dict(kwargs[sample])
        kwargs.setdefault("experiment_name", "")
        kwargs.setdefault("reference_build", "")
        kwargs.setdefault("normal", None)
        kwargs.setdefault("tumor", None)
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: pathlib.Path, **overrides: Any) -> ParameterSet:
        """Read a parameter file, replacing its values with `overrides`"""
        with open(path) as fh:
            d = json.load(fh)
        if not isinstance(d, dict):
            raise InputFormatError(
                f"The parameter file {path} does not hold a JSON object"
            )
        d.update(overrides)
        return cls.from_dict(d)

    def replace(self, **changes: Any) -> ParameterSet:
        return dataclasses.replace(self, **changes)


def _check_types(d: Dict[str, Any]) -> None:
    alleles = d.get("mhc_alleles")
    if alleles is not None and (
        not isinstance(alleles, (list, tuple))
        or not all(isinstance(x, str) for x in alleles)
    ):
        raise InputFormatError(
            f"'mhc_alleles' must be a list of allele names, got {alleles!r}"
        )
    for flag in FLAGS:
        if flag in d and not isinstance(d[flag], bool):
            raise InputFormatError(
                f"'{flag}' must be true or false, got {d[flag]!r}"
            )


def run_name(params: ParameterSet) -> str:
    """A name identifying the samples, experiment and reference"""
    rna_name = NO_RNA if params.rna is None else params.rna.sample_name
    return "-".join(
        [
            params.experiment_name,
            params.normal.sample_name,
            params.tumor.sample_name,
            rna_name,
            params.reference_build,
        ]
    )


def run_directory(params: ParameterSet) -> str:
    # Only the experiment name and the reference build take part so that
    # iterations on the same experiment share intermediate results
    return f"{params.experiment_name}-{params.reference_build}"


def metadata(params: ParameterSet) -> List[Tuple[str, str]]:
    """Labelled values describing the run for the report"""
    if params.mhc_alleles is None:
        alleles = "None provided"
    else:
        alleles = "Alleles: [{}]".format("; ".join(params.mhc_alleles))
    return [
        ("MHC Alleles", alleles),
        ("Reference-build", params.reference_build),
        ("Normal-input", params.normal.describe()),
        ("Tumor-input", params.tumor.describe()),
        ("RNA-input", "N/A" if params.rna is None else params.rna.describe()),
    ]
