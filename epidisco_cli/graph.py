"""
Inert, immutable graph nodes
"""

from __future__ import annotations

import hashlib
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence
from typing import Tuple

from .exceptions import PlanError
from .parameters import (
    BamFragment,
    Fragment,
    PairedEndFastq,
    SampleInput,
    SingleEndFastq,
)
from .report import Report
from .semantics import Semantics
from .tools import (
    IndelRealignerConfig,
    MarkDuplicatesConfig,
    MutectConfig,
    StarConfig,
    StrelkaConfig,
    ToolConfig,
)

Params = Tuple[Tuple[str, Any], ...]


def _freeze(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, ToolConfig):
        return value.to_dict()
    return value


class Node:
    """A typed handle to a deferred computation.

    `kind` is the type of the value the computation produces, `op` the
    operation that produces it. Nodes compare and hash by structure, and
    `identity` is a digest of that structure that is stable across
    processes.
    """

    __slots__ = ("kind", "op", "inputs", "params", "save_label", "identity")

    def __init__(
        self,
        kind: str,
        op: str,
        inputs: Sequence[Node] = (),
        params: Optional[Dict[str, Any]] = None,
        save_label: Optional[str] = None,
    ):
        frozen: Params = tuple(
            sorted((k, _freeze(v)) for k, v in (params or {}).items())
        )
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "op", op)
        object.__setattr__(self, "inputs", tuple(inputs))
        object.__setattr__(self, "params", frozen)
        object.__setattr__(self, "save_label", save_label)

        digest = hashlib.sha256()
        digest.update(repr((kind, op, frozen, save_label)).encode())
        for node in self.inputs:
            digest.update(node.identity.encode())
        object.__setattr__(self, "identity", digest.hexdigest())

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"Node is immutable, cannot set '{name}'")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"Node is immutable, cannot delete '{name}'")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Node):
            return NotImplemented
        return self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    def __repr__(self) -> str:
        label = f", save_label={self.save_label!r}" if self.save_label else ""
        return f"Node({self.kind}:{self.op}, {self.identity[:12]}{label})"

    def param(self, key: str, default: Any = None) -> Any:
        for k, v in self.params:
            if k == key:
                return v
        return default

    def walk(self) -> Iterator[Node]:
        """All distinct nodes of the graph, inputs before consumers"""
        seen = set()
        stack: List[Tuple[Node, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if node.identity in seen:
                continue
            if expanded:
                seen.add(node.identity)
                yield node
                continue
            stack.append((node, True))
            for upstream in reversed(node.inputs):
                if upstream.identity not in seen:
                    stack.append((upstream, False))

    def find(self, op: str) -> List[Node]:
        """All distinct nodes of the graph produced by `op`"""
        return [node for node in self.walk() if node.op == op]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "op": self.op,
            "identity": self.identity,
            "save_label": self.save_label,
            "params": {k: _jsonable(v) for k, v in self.params},
            "inputs": [node.identity for node in self.inputs],
        }


class GraphSemantics(Semantics):
    """Build the analysis as a graph of `Node`s"""

    def input_url(self, url: str) -> Node:
        return Node("file", "input_url", params={"url": url})

    def bed(self, file: Node) -> Node:
        return Node("bed", "bed", [file])

    def fastq(self, sample_name: str, fragment: Fragment) -> Node:
        if isinstance(fragment, PairedEndFastq):
            files = [fragment.r1, fragment.r2]
        elif isinstance(fragment, SingleEndFastq):
            files = [fragment.r]
        else:
            raise PlanError(f"Not a FASTQ fragment: {fragment!r}")
        return Node(
            "fastq",
            "fastq",
            params={
                "sample_name": sample_name,
                "files": files,
                "fragment_id": fragment.fragment_id,
            },
        )

    def bam(self, sample_name: str, fragment: BamFragment) -> Node:
        return Node(
            "bam",
            "bam",
            params={
                "sample_name": sample_name,
                "path": fragment.path,
                "pairing": fragment.pairing,
                "sorting": fragment.sorting,
                "reference_build": fragment.reference_build,
                "fragment_id": fragment.fragment_id,
            },
        )

    def bam_to_fastq(self, bam: Node, paired: bool) -> Node:
        return Node("fastq", "bam_to_fastq", [bam], {"paired": paired})

    def fastq_of_input(self, sample: SampleInput) -> Node:
        fastqs = []
        for fragment in sample.fragments:
            if isinstance(fragment, BamFragment):
                fastqs.append(
                    self.bam_to_fastq(
                        self.bam(sample.sample_name, fragment),
                        fragment.pairing == "PE",
                    )
                )
            else:
                fastqs.append(self.fastq(sample.sample_name, fragment))
        return self.list_(fastqs)

    def list_(self, elements: Sequence[Node]) -> Node:
        return Node("list", "list", elements)

    def list_map(self, lst: Node, fn: Callable[[Node], Node]) -> Node:
        if lst.op != "list":
            raise PlanError(f"Cannot map over a non-list node: {lst!r}")
        return self.list_([fn(element) for element in lst.inputs])

    def pair(self, first: Node, second: Node) -> Node:
        return Node("pair", "pair", [first, second])

    def pair_first(self, pair: Node) -> Node:
        return Node("bam", "pair_first", [pair])

    def pair_second(self, pair: Node) -> Node:
        return Node("bam", "pair_second", [pair])

    def concat(self, fastqs: Node) -> Node:
        return Node("fastq", "concat", [fastqs])

    def bwa_mem(self, reads: Node, reference_build: str) -> Node:
        return Node(
            "bam", "bwa_mem", [reads], {"reference_build": reference_build}
        )

    def star(
        self,
        fastq: Node,
        reference_build: str,
        configuration: StarConfig,
    ) -> Node:
        return Node(
            "bam",
            "star",
            [fastq],
            {"reference_build": reference_build, "config": configuration},
        )

    def merge_bams(self, bams: Node) -> Node:
        return Node("bam", "merge_bams", [bams])

    def picard_mark_duplicates(
        self, bam: Node, configuration: MarkDuplicatesConfig
    ) -> Node:
        return Node(
            "bam", "picard_mark_duplicates", [bam], {"config": configuration}
        )

    def gatk_indel_realigner(
        self,
        bam: Node,
        configuration: Sequence[IndelRealignerConfig],
    ) -> Node:
        return Node(
            "bam", "gatk_indel_realigner", [bam], {"config": configuration}
        )

    def gatk_indel_realigner_joint(
        self,
        bam_pair: Node,
        configuration: Sequence[IndelRealignerConfig],
    ) -> Node:
        return Node(
            "pair",
            "gatk_indel_realigner_joint",
            [bam_pair],
            {"config": configuration},
        )

    def gatk_bqsr(self, bam: Node) -> Node:
        return Node("bam", "gatk_bqsr", [bam])

    def strelka(
        self, normal: Node, tumor: Node, configuration: StrelkaConfig
    ) -> Node:
        return Node(
            "vcf", "strelka", [normal, tumor], {"config": configuration}
        )

    def mutect(
        self, normal: Node, tumor: Node, configuration: MutectConfig
    ) -> Node:
        return Node(
            "vcf", "mutect", [normal, tumor], {"config": configuration}
        )

    def gatk_haplotype_caller(self, bam: Node) -> Node:
        return Node("vcf", "gatk_haplotype_caller", [bam])

    def mutect2(self, normal: Node, tumor: Node) -> Node:
        return Node("vcf", "mutect2", [normal, tumor])

    def varscan_somatic(self, normal: Node, tumor: Node) -> Node:
        return Node("vcf", "varscan_somatic", [normal, tumor])

    def somaticsniper(self, normal: Node, tumor: Node) -> Node:
        return Node("vcf", "somaticsniper", [normal, tumor])

    def filter_to_region(self, vcf: Node, bed: Node) -> Node:
        return Node("vcf", "filter_to_region", [vcf, bed])

    def vcf_annotate_polyphen(self, vcf: Node) -> Node:
        return Node("vcf", "vcf_annotate_polyphen", [vcf])

    def stringtie(self, bam: Node) -> Node:
        return Node("gtf", "stringtie", [bam])

    def flagstat(self, bam: Node) -> Node:
        return Node("flagstat", "flagstat", [bam])

    def seq2hla(self, fastq: Node) -> Node:
        return Node("seq2hla", "seq2hla", [fastq])

    def hlarp(self, seq2hla: Node) -> Node:
        return Node("mhc_alleles", "hlarp", [seq2hla])

    def mhc_alleles(self, names: List[str]) -> Node:
        return Node("mhc_alleles", "mhc_alleles", params={"names": names})

    def vaxrank(
        self,
        vcfs: Sequence[Node],
        bam: Node,
        predictor: str,
        alleles: Node,
    ) -> Node:
        return Node(
            "vaxrank",
            "vaxrank",
            [self.list_(vcfs), bam, alleles],
            {"predictor": predictor},
        )

    def fastqc(self, fastq: Node) -> Node:
        return Node("fastqc", "fastqc", [fastq])

    def save(self, label: str, node: Node) -> Node:
        return Node(node.kind, "save", [node], save_label=label)

    def report(self, report: Report) -> Node:
        slots = report.slots()
        return Node(
            "report",
            "report",
            [node for _slot, node in slots],
            {
                "run_name": report.run_name,
                "bedfile": report.bedfile,
                "slots": [slot for slot, _node in slots],
                "metadata": report.metadata,
            },
        )
