"""
Configuration of the external tools
"""

from typing import Any, Dict, List, Optional, Tuple


class ToolConfig:
    """A base class for tool configurations"""

    tool = "ToolConfig"

    def __init__(self, name: str, parameters: Optional[List[str]] = None):
        self.name = name
        self.parameters = [] if parameters is None else list(parameters)

    def items(self) -> Tuple[Tuple[str, Any], ...]:
        """The configuration as sorted, hashable key/value pairs"""
        res: List[Tuple[str, Any]] = []
        for k, v in sorted(self.__dict__.items()):
            if isinstance(v, list):
                v = tuple(v)
            res.append((f"{self.tool}.{k}", v))
        return tuple(res)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.items())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ToolConfig):
            return NotImplemented
        return self.items() == other.items()

    def __hash__(self) -> int:
        return hash(self.items())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.items()!r})"


class IndelRealignerConfig(ToolConfig):
    """GATK IndelRealigner read filters"""

    tool = "IndelRealigner"

    def __init__(
        self,
        name: str,
        filter_reads_with_n_cigar: bool = False,
        filter_mismatching_base_and_quals: bool = False,
        filter_bases_not_stored: bool = False,
        parameters: Optional[List[str]] = None,
    ):
        super().__init__(name, parameters)
        self.filter_reads_with_n_cigar = filter_reads_with_n_cigar
        self.filter_mismatching_base_and_quals = (
            filter_mismatching_base_and_quals
        )
        self.filter_bases_not_stored = filter_bases_not_stored

    def filter_args(self) -> List[str]:
        args: List[str] = []
        if self.filter_reads_with_n_cigar:
            args.append("--filter_reads_with_N_cigar")
        if self.filter_mismatching_base_and_quals:
            args.append("--filter_mismatching_base_and_quals")
        if self.filter_bases_not_stored:
            args.append("--filter_bases_not_stored")
        return args + self.parameters


class RealignerTargetCreatorConfig(IndelRealignerConfig):
    tool = "RealignerTargetCreator"


class MarkDuplicatesConfig(ToolConfig):
    tool = "MarkDuplicates"

    def __init__(
        self,
        name: str = "default",
        remove_duplicates: bool = False,
        parameters: Optional[List[str]] = None,
    ):
        super().__init__(name, parameters)
        self.remove_duplicates = remove_duplicates


class StarConfig(ToolConfig):
    tool = "STAR"

    def __init__(
        self,
        name: str,
        sam_mapq_unique: Optional[int] = None,
        overhang_length: Optional[int] = None,
        parameters: Optional[List[str]] = None,
    ):
        super().__init__(name, parameters)
        self.sam_mapq_unique = sam_mapq_unique
        self.overhang_length = overhang_length


class StrelkaConfig(ToolConfig):
    tool = "Strelka"

    def __init__(
        self,
        name: str,
        is_exome: bool = False,
        parameters: Optional[List[str]] = None,
    ):
        super().__init__(name, parameters)
        self.is_exome = is_exome


class MutectConfig(ToolConfig):
    tool = "MuTect"


# Reads without base qualities that BWA leaves in the BAM (even unmapped)
# make the GATK realigner fail, so they are filtered out explicitly.
INDEL_REALIGNER_CONFIG = (
    IndelRealignerConfig(
        "ignore-mismatch",
        filter_reads_with_n_cigar=True,
        filter_mismatching_base_and_quals=True,
        filter_bases_not_stored=True,
    ),
    RealignerTargetCreatorConfig(
        "ignore-mismatch",
        filter_reads_with_n_cigar=True,
        filter_mismatching_base_and_quals=True,
        filter_bases_not_stored=True,
    ),
)

# STAR reports unique alignments with MAPQ 255, meaningless to the GATK
STAR_CONFIG = StarConfig("mapq_default_60", sam_mapq_unique=60)

STRELKA_CONFIG = StrelkaConfig("exome_default", is_exome=True)

MUTECT_CONFIG = MutectConfig("default")

MARK_DUPS_CONFIG = MarkDuplicatesConfig("default")

VAXRANK_PREDICTOR = "NetMHCcons"
