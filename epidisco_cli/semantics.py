"""
The operations available to build an analysis graph.

The workflow only talks to a `Semantics` instance; it never looks at the
values returned by these methods, it only passes them along to other
operations. A backend decides what a node is: `graph.GraphSemantics` builds
inert, immutable `Node` values that the plan compiler lowers into jobs, and
tests can substitute a mock.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Sequence

from .parameters import BamFragment, Fragment, SampleInput
from .tools import (
    IndelRealignerConfig,
    MarkDuplicatesConfig,
    MutectConfig,
    StarConfig,
    StrelkaConfig,
)

if TYPE_CHECKING:
    from .report import Report

# An opaque handle to a deferred computation
Repr = Any


class Semantics(ABC):
    """Node-producing operations"""

    # Inputs

    @abstractmethod
    def input_url(self, url: str) -> Repr:
        pass

    @abstractmethod
    def bed(self, file: Repr) -> Repr:
        pass

    @abstractmethod
    def fastq(self, sample_name: str, fragment: Fragment) -> Repr:
        """A FASTQ fragment (paired or single-end)"""

    @abstractmethod
    def bam(self, sample_name: str, fragment: BamFragment) -> Repr:
        """An existing BAM to be re-aligned"""

    @abstractmethod
    def bam_to_fastq(self, bam: Repr, paired: bool) -> Repr:
        pass

    @abstractmethod
    def fastq_of_input(self, sample: SampleInput) -> Repr:
        """A list of FASTQ nodes, one per fragment of the sample"""

    # Structure

    @abstractmethod
    def list_(self, elements: Sequence[Repr]) -> Repr:
        pass

    @abstractmethod
    def list_map(self, lst: Repr, fn: Callable[[Repr], Repr]) -> Repr:
        pass

    @abstractmethod
    def pair(self, first: Repr, second: Repr) -> Repr:
        pass

    @abstractmethod
    def pair_first(self, pair: Repr) -> Repr:
        pass

    @abstractmethod
    def pair_second(self, pair: Repr) -> Repr:
        pass

    @abstractmethod
    def concat(self, fastqs: Repr) -> Repr:
        pass

    # Alignment

    @abstractmethod
    def bwa_mem(self, reads: Repr, reference_build: str) -> Repr:
        pass

    @abstractmethod
    def star(
        self,
        fastq: Repr,
        reference_build: str,
        configuration: StarConfig,
    ) -> Repr:
        pass

    @abstractmethod
    def merge_bams(self, bams: Repr) -> Repr:
        pass

    @abstractmethod
    def picard_mark_duplicates(
        self, bam: Repr, configuration: MarkDuplicatesConfig
    ) -> Repr:
        pass

    @abstractmethod
    def gatk_indel_realigner(
        self,
        bam: Repr,
        configuration: Sequence[IndelRealignerConfig],
    ) -> Repr:
        pass

    @abstractmethod
    def gatk_indel_realigner_joint(
        self,
        bam_pair: Repr,
        configuration: Sequence[IndelRealignerConfig],
    ) -> Repr:
        pass

    @abstractmethod
    def gatk_bqsr(self, bam: Repr) -> Repr:
        pass

    # Variant calling

    @abstractmethod
    def strelka(
        self, normal: Repr, tumor: Repr, configuration: StrelkaConfig
    ) -> Repr:
        pass

    @abstractmethod
    def mutect(
        self, normal: Repr, tumor: Repr, configuration: MutectConfig
    ) -> Repr:
        pass

    @abstractmethod
    def gatk_haplotype_caller(self, bam: Repr) -> Repr:
        pass

    @abstractmethod
    def mutect2(self, normal: Repr, tumor: Repr) -> Repr:
        pass

    @abstractmethod
    def varscan_somatic(self, normal: Repr, tumor: Repr) -> Repr:
        pass

    @abstractmethod
    def somaticsniper(self, normal: Repr, tumor: Repr) -> Repr:
        pass

    @abstractmethod
    def filter_to_region(self, vcf: Repr, bed: Repr) -> Repr:
        pass

    @abstractmethod
    def vcf_annotate_polyphen(self, vcf: Repr) -> Repr:
        pass

    # RNA

    @abstractmethod
    def stringtie(self, bam: Repr) -> Repr:
        pass

    @abstractmethod
    def flagstat(self, bam: Repr) -> Repr:
        pass

    @abstractmethod
    def seq2hla(self, fastq: Repr) -> Repr:
        pass

    @abstractmethod
    def hlarp(self, seq2hla: Repr) -> Repr:
        """MHC alleles parsed out of a Seq2HLA result"""

    @abstractmethod
    def mhc_alleles(self, names: List[str]) -> Repr:
        """MHC alleles given by name"""

    # Neoantigens, QC and reporting

    @abstractmethod
    def vaxrank(
        self,
        vcfs: Sequence[Repr],
        bam: Repr,
        predictor: str,
        alleles: Repr,
    ) -> Repr:
        pass

    @abstractmethod
    def fastqc(self, fastq: Repr) -> Repr:
        pass

    @abstractmethod
    def save(self, label: str, node: Repr) -> Repr:
        """Checkpoint a node under a stable name"""

    @abstractmethod
    def report(self, report: Report) -> Repr:
        pass
