"""
The terminal aggregate of a run
"""

from __future__ import annotations

import dataclasses
from typing import Any, Callable, Dict, List, Optional, Tuple

Repr = Any

# Single-node slots of the report, in display order
NODE_SLOTS = (
    "qc_normal",
    "qc_tumor",
    "normal_bam",
    "tumor_bam",
    "normal_bam_flagstat",
    "tumor_bam_flagstat",
    "rna_bam",
    "rna_bam_flagstat",
    "stringtie",
    "seq2hla",
    "vaxrank",
)

VCF_SLOT_PREFIX = "vcf:"


@dataclasses.dataclass(frozen=True)
class Report:
    """Everything the report renderer consumes"""

    run_name: str
    qc_normal: Repr
    qc_tumor: Repr
    normal_bam: Repr
    tumor_bam: Repr
    normal_bam_flagstat: Repr
    tumor_bam_flagstat: Repr
    vcfs: Tuple[Tuple[str, Repr], ...]
    metadata: Tuple[Tuple[str, str], ...]
    bedfile: Optional[str] = None
    rna_bam: Optional[Repr] = None
    rna_bam_flagstat: Optional[Repr] = None
    stringtie: Optional[Repr] = None
    seq2hla: Optional[Repr] = None
    vaxrank: Optional[Repr] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "vcfs", tuple(map(tuple, self.vcfs)))
        object.__setattr__(
            self, "metadata", tuple(map(tuple, self.metadata))
        )

    def __repr__(self) -> str:
        return f"Report({self.run_name})"

    def slots(self) -> List[Tuple[str, Repr]]:
        """The present nodes of the report, keyed by slot name"""
        res = [
            (slot, getattr(self, slot))
            for slot in NODE_SLOTS
            if getattr(self, slot) is not None
        ]
        res.extend((VCF_SLOT_PREFIX + name, vcf) for name, vcf in self.vcfs)
        return res

    def to_dict(self, render: Callable[[Repr], Any] = str) -> Dict[str, Any]:
        """A JSON-serializable summary, rendering nodes with `render`"""
        return {
            "run_name": self.run_name,
            "bedfile": self.bedfile,
            "nodes": {
                slot: render(node)
                for slot, node in self.slots()
                if not slot.startswith(VCF_SLOT_PREFIX)
            },
            "vcfs": {name: render(vcf) for name, vcf in self.vcfs},
            "metadata": [list(pair) for pair in self.metadata],
        }
