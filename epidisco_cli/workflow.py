"""
Assemble the tumor/normal analysis graph
"""

from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from . import parameters as prm
from .callers import NamedCall, call_variants, somatic_vcfs
from .logging import get_logger
from .parameters import BamFragment, ParameterSet, SampleInput
from .report import Report
from .semantics import Semantics
from .tools import (
    INDEL_REALIGNER_CONFIG,
    MARK_DUPS_CONFIG,
    STAR_CONFIG,
    VAXRANK_PREDICTOR,
)
from .util import opt_bind, opt_map

logger = get_logger(__name__)

Repr = Any

ANNOTATED_BUILDS = ("b37", "hg19")
# Seq2HLA types human alleles only
NO_HLA_TYPING_BUILDS = ("mm10",)


class RnaBranch(NamedTuple):
    bam: Repr
    stringtie: Repr
    seq2hla: Optional[Repr]
    flagstat: Repr


class Workflow:
    """The tumor/normal analysis, built with the operations of `bfx`"""

    def __init__(self, bfx: Semantics):
        self.bfx = bfx

    def alignment_inputs(self, sample: SampleInput) -> List[Repr]:
        """One aligner input per fragment of the sample"""
        inputs = []
        for fragment in sample.fragments:
            if isinstance(fragment, BamFragment):
                inputs.append(self.bfx.bam(sample.sample_name, fragment))
            else:
                inputs.append(self.bfx.fastq(sample.sample_name, fragment))
        return inputs

    def to_bam(self, sample: SampleInput, reference_build: str) -> Repr:
        """Aligned, merged and deduplicated reads of one sample"""
        bfx = self.bfx
        aligned = [
            bfx.bwa_mem(reads, reference_build)
            for reads in self.alignment_inputs(sample)
        ]
        merged = bfx.merge_bams(bfx.list_(aligned))
        return bfx.picard_mark_duplicates(
            merged, configuration=MARK_DUPS_CONFIG
        )

    def final_bams(self, normal: Repr, tumor: Repr) -> Tuple[Repr, Repr]:
        """Jointly realign the pair, then recalibrate each sample"""
        bfx = self.bfx
        pair = bfx.gatk_indel_realigner_joint(
            bfx.pair(normal, tumor), configuration=INDEL_REALIGNER_CONFIG
        )
        return (
            bfx.gatk_bqsr(bfx.pair_first(pair)),
            bfx.gatk_bqsr(bfx.pair_second(pair)),
        )

    def qc(self, fastqs: Repr) -> Repr:
        return self.bfx.fastqc(self.bfx.concat(fastqs))

    def rna_bam(self, fastqs: Repr, reference_build: str) -> Repr:
        bfx = self.bfx
        aligned = bfx.list_map(
            fastqs,
            lambda fq: bfx.star(
                fq, reference_build, configuration=STAR_CONFIG
            ),
        )
        deduped = bfx.picard_mark_duplicates(
            bfx.merge_bams(aligned), configuration=MARK_DUPS_CONFIG
        )
        return bfx.gatk_indel_realigner(
            deduped, configuration=INDEL_REALIGNER_CONFIG
        )

    def hla(self, fastqs: Repr) -> Repr:
        typed = self.bfx.seq2hla(self.bfx.concat(fastqs))
        return self.bfx.save("Seq2HLA", typed)

    def rna_pipeline(
        self, fastqs: Repr, reference_build: str, with_seq2hla: bool
    ) -> RnaBranch:
        bfx = self.bfx
        bam = self.rna_bam(fastqs, reference_build)
        seq2hla = None
        if reference_build in NO_HLA_TYPING_BUILDS:
            logger.debug("No HLA typing on %s", reference_build)
        elif not with_seq2hla:
            logger.debug("HLA typing is disabled")
        else:
            seq2hla = self.hla(fastqs)
        return RnaBranch(
            bam=bfx.save("rna-bam", bam),
            stringtie=bfx.save("stringtie", bfx.stringtie(bam)),
            seq2hla=seq2hla,
            flagstat=bfx.save("rna-bam-flagstat", bfx.flagstat(bam)),
        )

    def annotate(
        self, calls: Sequence[NamedCall], reference_build: str
    ) -> List[Tuple[str, Repr]]:
        """Functionally annotate the calls on builds that support it"""
        bfx = self.bfx
        if reference_build in ANNOTATED_BUILDS:
            return [
                (
                    call.name,
                    bfx.save(
                        f"annotated-{call.name}",
                        bfx.vcf_annotate_polyphen(call.vcf),
                    ),
                )
                for call in calls
            ]
        logger.debug("No VCF annotation on %s", reference_build)
        return [
            (call.name, bfx.save(f"vcf-{call.name}", call.vcf))
            for call in calls
        ]

    def resolve_alleles(
        self,
        mhc_alleles: Optional[Sequence[str]],
        seq2hla: Optional[Repr],
    ) -> Optional[Repr]:
        """Explicit alleles first, then the typed ones, else nothing"""
        if mhc_alleles is not None:
            return self.bfx.mhc_alleles(list(mhc_alleles))
        return opt_map(seq2hla, self.bfx.hlarp)

    def vaxrank(
        self,
        vcfs: List[Repr],
        rna_bam: Optional[Repr],
        alleles: Optional[Repr],
    ) -> Optional[Repr]:
        """Rank neoantigens if both expression and alleles are known"""
        bfx = self.bfx
        return opt_bind(
            rna_bam,
            lambda bam: opt_map(
                alleles,
                lambda mhc: bfx.save(
                    "Vaxrank", bfx.vaxrank(vcfs, bam, VAXRANK_PREDICTOR, mhc)
                ),
            ),
        )

    def build_report(self, params: ParameterSet) -> Report:
        """Assemble every branch of the analysis"""
        bfx = self.bfx
        build = params.reference_build
        logger.debug("Assembling %s", prm.run_name(params))

        normal_bam, tumor_bam = self.final_bams(
            self.to_bam(params.normal, build),
            self.to_bam(params.tumor, build),
        )
        normal_bam = bfx.save("normal-bam", normal_bam)
        tumor_bam = bfx.save("tumor-bam", tumor_bam)
        normal_bam_flagstat = bfx.save(
            "normal-bam-flagstat", bfx.flagstat(normal_bam)
        )
        tumor_bam_flagstat = bfx.save(
            "tumor-bam-flagstat", bfx.flagstat(tumor_bam)
        )

        calls = call_variants(bfx, params, normal_bam, tumor_bam)

        rna = opt_map(
            opt_map(params.rna, bfx.fastq_of_input),
            lambda fastqs: self.rna_pipeline(
                fastqs, build, params.with_seq2hla
            ),
        )
        rna_bam = opt_map(rna, lambda branch: branch.bam)
        seq2hla = opt_bind(rna, lambda branch: branch.seq2hla)

        alleles = self.resolve_alleles(params.mhc_alleles, seq2hla)
        vaxrank = self.vaxrank(somatic_vcfs(calls), rna_bam, alleles)
        if vaxrank is None:
            logger.debug("No neoantigen ranking: RNA or alleles missing")

        qc_normal = self.qc(bfx.fastq_of_input(params.normal))
        qc_tumor = self.qc(bfx.fastq_of_input(params.tumor))

        return Report(
            prm.run_name(params),
            qc_normal=bfx.save("QC:normal", qc_normal),
            qc_tumor=bfx.save("QC:tumor", qc_tumor),
            normal_bam=normal_bam,
            tumor_bam=tumor_bam,
            normal_bam_flagstat=normal_bam_flagstat,
            tumor_bam_flagstat=tumor_bam_flagstat,
            vcfs=self.annotate(calls, build),
            metadata=prm.metadata(params),
            bedfile=params.bedfile,
            rna_bam=rna_bam,
            rna_bam_flagstat=opt_map(rna, lambda branch: branch.flagstat),
            stringtie=opt_map(rna, lambda branch: branch.stringtie),
            seq2hla=seq2hla,
            vaxrank=vaxrank,
        )

    def run(self, params: ParameterSet) -> Repr:
        """The terminal report node of the analysis"""
        return self.bfx.report(self.build_report(params))
