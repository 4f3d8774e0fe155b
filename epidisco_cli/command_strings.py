"""
This module contains the functions that accept arguments and return the
command strings.
"""

import json
import pathlib
from typing import Any, Dict, List, Optional, Sequence, Union

from .logging import get_logger
from .shell_pipeline import Command, Pipeline
from .tools import (
    IndelRealignerConfig,
    MarkDuplicatesConfig,
    StarConfig,
    StrelkaConfig,
)

logger = get_logger(__name__)

VEP_ASSEMBLY = {
    "b37": "GRCh37",
    "hg19": "GRCh37",
    "b38": "GRCh38",
    "hg38": "GRCh38",
}


def read_group(sample_name: str, fragment_id: str) -> str:
    """An @RG line for the aligners"""
    return f"@RG\\tID:{fragment_id}\\tSM:{sample_name}\\tPL:ILLUMINA"


def cmd_bwa_mem(
    reads: Sequence[pathlib.Path],
    reference: pathlib.Path,
    out_bam: pathlib.Path,
    rg_line: str,
    cores: int,
) -> Pipeline:
    """Align FASTQ files"""
    bwa = Command(
        "bwa",
        "mem",
        "-t",
        str(cores),
        "-R",
        rg_line,
        str(reference),
        *[str(x) for x in reads],
    )
    sort = Command(
        "samtools", "sort", "-@", str(cores), "-o", str(out_bam), "-"
    )
    return Pipeline(bwa, sort)


def cmd_bwa_mem_bam(
    in_bam: pathlib.Path,
    reference: pathlib.Path,
    out_bam: pathlib.Path,
    rg_line: str,
    cores: int,
    paired: bool = True,
    sorting: Optional[str] = None,
) -> Pipeline:
    """Re-align the reads of an existing BAM"""
    cmds: List[Command] = []
    if paired and sorting != "read_name":
        cmds.append(
            Command(
                "samtools",
                "collate",
                "-O",
                "-u",
                "-@",
                str(cores),
                str(in_bam),
            )
        )
        cmds.append(Command("samtools", "fastq", "-"))
    else:
        cmds.append(Command("samtools", "fastq", str(in_bam)))
    bwa_args = ["mem", "-t", str(cores), "-R", rg_line]
    if paired:
        bwa_args.append("-p")
    cmds.append(Command("bwa", *bwa_args, str(reference), "-"))
    cmds.append(
        Command("samtools", "sort", "-@", str(cores), "-o", str(out_bam), "-")
    )
    return Pipeline(*cmds)


def cmd_bam_to_fastq(
    in_bam: pathlib.Path,
    out_fastq: Sequence[pathlib.Path],
    cores: int,
) -> Pipeline:
    """Extract the reads of a BAM file"""
    if len(out_fastq) == 2:
        collate = Command(
            "samtools", "collate", "-O", "-u", "-@", str(cores), str(in_bam)
        )
        fastq = Command(
            "samtools",
            "fastq",
            "-1",
            str(out_fastq[0]),
            "-2",
            str(out_fastq[1]),
            "-0",
            "/dev/null",
            "-s",
            "/dev/null",
            "-n",
            "-",
        )
        return Pipeline(collate, fastq)
    return Pipeline(
        Command("samtools", "fastq", "-0", str(out_fastq[0]), str(in_bam))
    )


def cmd_concat(
    in_files: Sequence[pathlib.Path], out_file: pathlib.Path
) -> Pipeline:
    return Pipeline(
        Command("cat", *[str(x) for x in in_files]), file_output=out_file
    )


def cmd_samtools_merge(
    in_bams: Sequence[pathlib.Path], out_bam: pathlib.Path, cores: int
) -> Pipeline:
    """Merge BAM files"""
    merge = Command(
        "samtools",
        "merge",
        "-f",
        "-@",
        str(cores),
        str(out_bam),
        *[str(x) for x in in_bams],
    )
    index = Command("samtools", "index", str(out_bam))
    return Pipeline(merge, index, skip_pipe=[0])


def cmd_mark_duplicates(
    in_bam: pathlib.Path,
    out_bam: pathlib.Path,
    metrics: pathlib.Path,
    configuration: MarkDuplicatesConfig,
) -> Pipeline:
    """Picard MarkDuplicates"""
    remove = "true" if configuration.remove_duplicates else "false"
    mark = Command(
        "picard",
        "MarkDuplicates",
        f"INPUT={in_bam}",
        f"OUTPUT={out_bam}",
        f"METRICS_FILE={metrics}",
        f"REMOVE_DUPLICATES={remove}",
        "VALIDATION_STRINGENCY=LENIENT",
        *configuration.parameters,
    )
    index = Command("samtools", "index", str(out_bam))
    return Pipeline(mark, index, skip_pipe=[0])


def cmd_indel_realigner(
    in_bams: Sequence[pathlib.Path],
    intervals: pathlib.Path,
    reference: pathlib.Path,
    configuration: Sequence[IndelRealignerConfig],
    out_bam: Optional[pathlib.Path] = None,
    out_map: Optional[pathlib.Path] = None,
    cores: int = 1,
) -> Pipeline:
    """GATK3 RealignerTargetCreator followed by IndelRealigner.

    With a single input, the realigned reads go to `out_bam`. With several
    inputs, the `-nWayOut` map file `out_map` pairs each input with its
    output.
    """
    realigner_cfg, target_cfg = configuration
    inputs: List[str] = []
    for bam in in_bams:
        inputs.extend(["-I", str(bam)])

    target = Command(
        "gatk3",
        "-T",
        "RealignerTargetCreator",
        "-R",
        str(reference),
        *inputs,
        "-nt",
        str(cores),
        "-o",
        str(intervals),
        *target_cfg.filter_args(),
    )
    if out_map is not None:
        output = ["-nWayOut", str(out_map)]
    else:
        assert out_bam
        output = ["-o", str(out_bam)]
    realign = Command(
        "gatk3",
        "-T",
        "IndelRealigner",
        "-R",
        str(reference),
        *inputs,
        "-targetIntervals",
        str(intervals),
        *output,
        *realigner_cfg.filter_args(),
    )
    return Pipeline(target, realign, skip_pipe=[0])


def cmd_nway_map(
    pairs: Sequence[Sequence[pathlib.Path]], out_map: pathlib.Path
) -> Pipeline:
    """Write the IndelRealigner -nWayOut mapping file"""
    args: List[str] = []
    for in_bam, out_bam in pairs:
        args.extend([in_bam.name, str(out_bam)])
    return Pipeline(
        Command("printf", "%s\\t%s\\n", *args), file_output=out_map
    )


def cmd_bqsr(
    in_bam: pathlib.Path,
    out_bam: pathlib.Path,
    recal_table: pathlib.Path,
    reference: pathlib.Path,
    dbsnp: pathlib.Path,
    cores: int,
) -> Pipeline:
    """GATK3 BaseRecalibrator and PrintReads"""
    recal = Command(
        "gatk3",
        "-T",
        "BaseRecalibrator",
        "-R",
        str(reference),
        "-I",
        str(in_bam),
        "-knownSites",
        str(dbsnp),
        "-nct",
        str(cores),
        "-o",
        str(recal_table),
    )
    print_reads = Command(
        "gatk3",
        "-T",
        "PrintReads",
        "-R",
        str(reference),
        "-I",
        str(in_bam),
        "-BQSR",
        str(recal_table),
        "-nct",
        str(cores),
        "-o",
        str(out_bam),
    )
    return Pipeline(recal, print_reads, skip_pipe=[0])


def cmd_strelka(
    normal: pathlib.Path,
    tumor: pathlib.Path,
    reference: pathlib.Path,
    run_dir: pathlib.Path,
    out_vcf: pathlib.Path,
    configuration: StrelkaConfig,
    cores: int,
) -> Pipeline:
    """Strelka somatic small variants"""
    configure = [
        "configureStrelkaSomaticWorkflow.py",
        "--normalBam",
        str(normal),
        "--tumorBam",
        str(tumor),
        "--referenceFasta",
        str(reference),
        "--runDir",
        str(run_dir),
    ]
    if configuration.is_exome:
        configure.append("--exome")
    configure.extend(configuration.parameters)
    return Pipeline(
        Command(*configure),
        Command(
            str(run_dir / "runWorkflow.py"), "-m", "local", "-j", str(cores)
        ),
        Command(
            "cp",
            str(run_dir / "results" / "variants" / "somatic.snvs.vcf.gz"),
            str(out_vcf),
        ),
        skip_pipe=[0, 1],
    )


def cmd_mutect(
    normal: pathlib.Path,
    tumor: pathlib.Path,
    reference: pathlib.Path,
    dbsnp: pathlib.Path,
    cosmic: pathlib.Path,
    out_vcf: pathlib.Path,
    parameters: Sequence[str] = (),
) -> Pipeline:
    """MuTect 1"""
    return Pipeline(
        Command(
            "mutect",
            "--analysis_type",
            "MuTect",
            "--reference_sequence",
            str(reference),
            "--dbsnp",
            str(dbsnp),
            "--cosmic",
            str(cosmic),
            "--input_file:normal",
            str(normal),
            "--input_file:tumor",
            str(tumor),
            "--vcf",
            str(out_vcf),
            "--out",
            str(out_vcf) + ".call_stats.txt",
            *parameters,
        )
    )


def cmd_mutect2(
    normal: pathlib.Path,
    tumor: pathlib.Path,
    reference: pathlib.Path,
    dbsnp: pathlib.Path,
    cosmic: pathlib.Path,
    out_vcf: pathlib.Path,
    cores: int,
) -> Pipeline:
    """GATK3 MuTect2"""
    return Pipeline(
        Command(
            "gatk3",
            "-T",
            "MuTect2",
            "-R",
            str(reference),
            "-I:normal",
            str(normal),
            "-I:tumor",
            str(tumor),
            "--dbsnp",
            str(dbsnp),
            "--cosmic",
            str(cosmic),
            "-nct",
            str(cores),
            "-o",
            str(out_vcf),
        )
    )


def cmd_haplotype_caller(
    in_bam: pathlib.Path,
    reference: pathlib.Path,
    dbsnp: pathlib.Path,
    out_vcf: pathlib.Path,
    cores: int,
) -> Pipeline:
    """GATK3 HaplotypeCaller"""
    return Pipeline(
        Command(
            "gatk3",
            "-T",
            "HaplotypeCaller",
            "-R",
            str(reference),
            "-I",
            str(in_bam),
            "--dbsnp",
            str(dbsnp),
            "-nct",
            str(cores),
            "-o",
            str(out_vcf),
        )
    )


def cmd_varscan_somatic(
    normal: pathlib.Path,
    tumor: pathlib.Path,
    reference: pathlib.Path,
    out_prefix: pathlib.Path,
    out_vcf: pathlib.Path,
) -> Pipeline:
    """VarScan2 somatic on a joint mpileup"""
    mpileup = Command(
        "samtools", "mpileup", "-f", str(reference), str(normal), str(tumor)
    )
    varscan = Command(
        "varscan",
        "somatic",
        "-",
        str(out_prefix),
        "--mpileup",
        "1",
        "--output-vcf",
        "1",
    )
    concat = Command(
        "bcftools",
        "concat",
        "-o",
        str(out_vcf),
        str(out_prefix) + ".snp.vcf",
        str(out_prefix) + ".indel.vcf",
    )
    return Pipeline(mpileup, varscan, concat, skip_pipe=[1])


def cmd_somaticsniper(
    normal: pathlib.Path,
    tumor: pathlib.Path,
    reference: pathlib.Path,
    out_vcf: pathlib.Path,
) -> Pipeline:
    return Pipeline(
        Command(
            "bam-somaticsniper",
            "-F",
            "vcf",
            "-f",
            str(reference),
            str(tumor),
            str(normal),
            str(out_vcf),
        )
    )


def cmd_filter_to_region(
    in_vcf: pathlib.Path,
    bed: Union[pathlib.Path, str],
    out_vcf: pathlib.Path,
) -> Pipeline:
    """Keep the variants overlapping the regions of a BED file or URL"""
    return Pipeline(
        Command(
            "bedtools",
            "intersect",
            "-header",
            "-u",
            "-a",
            str(in_vcf),
            "-b",
            str(bed),
        ),
        file_output=out_vcf,
    )


def cmd_vep_polyphen(
    in_vcf: pathlib.Path,
    out_vcf: pathlib.Path,
    reference: pathlib.Path,
    reference_build: str,
    cores: int,
) -> Pipeline:
    """Annotate variants with VEP, including PolyPhen predictions"""
    assembly = VEP_ASSEMBLY.get(reference_build, reference_build)
    return Pipeline(
        Command(
            "vep",
            "--input_file",
            str(in_vcf),
            "--output_file",
            str(out_vcf),
            "--vcf",
            "--offline",
            "--cache",
            "--polyphen",
            "b",
            "--assembly",
            assembly,
            "--fasta",
            str(reference),
            "--fork",
            str(cores),
            "--force_overwrite",
        )
    )


def cmd_star(
    reads: Sequence[pathlib.Path],
    genome_dir: pathlib.Path,
    out_prefix: pathlib.Path,
    out_bam: pathlib.Path,
    configuration: StarConfig,
    cores: int,
) -> Pipeline:
    """STAR RNA alignment"""
    args = [
        "--runThreadN",
        str(cores),
        "--genomeDir",
        str(genome_dir),
        "--readFilesIn",
        *[str(x) for x in reads],
        "--outFileNamePrefix",
        str(out_prefix),
        "--outSAMtype",
        "BAM",
        "SortedByCoordinate",
        "--outSAMattrRGline",
        "ID:1",
    ]
    if any(str(x).endswith(".gz") for x in reads):
        args.extend(["--readFilesCommand", "zcat"])
    if configuration.sam_mapq_unique is not None:
        args.extend(["--outSAMmapqUnique", str(configuration.sam_mapq_unique)])
    if configuration.overhang_length is not None:
        args.extend(["--sjdbOverhang", str(configuration.overhang_length)])
    args.extend(configuration.parameters)
    return Pipeline(
        Command("STAR", *args),
        Command(
            "mv",
            str(out_prefix) + "Aligned.sortedByCoord.out.bam",
            str(out_bam),
        ),
        skip_pipe=[0],
    )


def cmd_stringtie(
    in_bam: pathlib.Path, gtf: pathlib.Path, out_gtf: pathlib.Path, cores: int
) -> Pipeline:
    return Pipeline(
        Command(
            "stringtie",
            str(in_bam),
            "-G",
            str(gtf),
            "-p",
            str(cores),
            "-o",
            str(out_gtf),
        )
    )


def cmd_flagstat(in_bam: pathlib.Path, out_file: pathlib.Path) -> Pipeline:
    return Pipeline(
        Command("samtools", "flagstat", str(in_bam)), file_output=out_file
    )


def cmd_seq2hla(
    reads: Sequence[pathlib.Path], out_dir: pathlib.Path, cores: int
) -> Pipeline:
    """HLA typing from RNA reads"""
    args = ["-1", str(reads[0])]
    if len(reads) > 1:
        args.extend(["-2", str(reads[1])])
    return Pipeline(
        Command("mkdir", "-p", str(out_dir)),
        Command(
            "seq2HLA",
            *args,
            "-r",
            str(out_dir / "seq2hla"),
            "-p",
            str(cores),
        ),
        skip_pipe=[0],
    )


def cmd_hlarp(seq2hla_dir: pathlib.Path, out_file: pathlib.Path) -> Pipeline:
    """Extract the MHC alleles of a Seq2HLA run"""
    return Pipeline(
        Command("hlarp", "seq2hla", str(seq2hla_dir)), file_output=out_file
    )


def cmd_vaxrank(
    vcfs: Sequence[pathlib.Path],
    rna_bam: pathlib.Path,
    predictor: str,
    out_report: pathlib.Path,
    mhc_alleles: Optional[Sequence[str]] = None,
    mhc_alleles_file: Optional[pathlib.Path] = None,
) -> Pipeline:
    """Rank neoantigen vaccine peptides"""
    args: List[str] = []
    for vcf in vcfs:
        args.extend(["--vcf", str(vcf)])
    args.extend(["--bam", str(rna_bam)])
    args.extend(["--mhc-predictor", predictor.lower()])
    if mhc_alleles is not None:
        args.extend(["--mhc-alleles", ",".join(mhc_alleles)])
    else:
        assert mhc_alleles_file
        args.extend(["--mhc-alleles-file", str(mhc_alleles_file)])
    args.extend(["--output-ascii-report", str(out_report)])
    return Pipeline(Command("vaxrank", *args))


def cmd_fastqc(
    reads: Sequence[pathlib.Path], out_dir: pathlib.Path, cores: int
) -> Pipeline:
    return Pipeline(
        Command("mkdir", "-p", str(out_dir)),
        Command(
            "fastqc",
            "-t",
            str(cores),
            "-o",
            str(out_dir),
            *[str(x) for x in reads],
        ),
        skip_pipe=[0],
    )


def cmd_save(
    targets: Sequence[Union[pathlib.Path, str]],
    destinations: Sequence[pathlib.Path],
) -> Pipeline:
    """Link checkpointed outputs under their saved names"""
    cmds = [
        Command("ln", "-sfn", str(target), str(dst))
        for target, dst in zip(targets, destinations)
    ]
    return Pipeline(*cmds, skip_pipe=range(len(cmds) - 1))


def cmd_write_manifest(
    manifest: Dict[str, Any], out_file: pathlib.Path
) -> Pipeline:
    """Write the report manifest"""
    return Pipeline(
        Command("echo", json.dumps(manifest, sort_keys=True)),
        file_output=out_file,
    )


def cmd_mkdir(*dirs: pathlib.Path) -> Pipeline:
    return Pipeline(Command("mkdir", "-p", *[str(x) for x in dirs]))
