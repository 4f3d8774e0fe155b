"""
Lower a graph of `Node`s into a DAG of jobs
"""

from __future__ import annotations

import os
import pathlib
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

from . import command_strings as cmds
from .dag import DAG
from .exceptions import PlanError
from .graph import Node
from .job import Job
from .logging import get_logger
from .report import VCF_SLOT_PREFIX
from .shell_pipeline import Pipeline
from .util import sanitize_label

logger = get_logger(__name__)

SAVED_DIR = "saved"

# URLs are kept as strings, pathlib would collapse their "//"
Location = Union[pathlib.Path, str]


class ReferenceFiles:
    """The files of a reference build under the reference root"""

    def __init__(self, reference_root: pathlib.Path, reference_build: str):
        build_dir = reference_root / reference_build
        self.build = reference_build
        self.fasta = build_dir / f"{reference_build}.fasta"
        self.dbsnp = build_dir / "dbsnp.vcf.gz"
        self.cosmic = build_dir / "cosmic.vcf.gz"
        self.gtf = build_dir / "transcripts.gtf"
        self.star_index = build_dir / "star-index"


class Artifact:
    """Where the output of a compiled node lives and what produces it"""

    def __init__(
        self,
        paths: Sequence[Location] = (),
        jobs: FrozenSet[Job] = frozenset(),
        elements: Sequence[Artifact] = (),
        alleles: Optional[Tuple[str, ...]] = None,
    ):
        self.paths = tuple(paths)
        self.jobs = jobs
        self.elements = tuple(elements)
        self.alleles = alleles

    def __repr__(self) -> str:
        return f"Artifact({[str(x) for x in self.paths]})"


def _jobs(artifacts: Sequence[Artifact]) -> FrozenSet[Job]:
    res: FrozenSet[Job] = frozenset()
    for artifact in artifacts:
        res = res | artifact.jobs
    return res


class PlanCompiler:
    """Turn the analysis graph into jobs writing into `run_dir`"""

    def __init__(
        self,
        run_dir: pathlib.Path,
        reference_root: pathlib.Path,
        reference_build: str,
        cores: int = 1,
    ):
        self.run_dir = run_dir
        self.saved_dir = run_dir / SAVED_DIR
        self.reference = ReferenceFiles(reference_root, reference_build)
        self.cores = cores
        self.dag = DAG()
        self.artifacts: Dict[str, Artifact] = {}
        self.saved: Dict[str, Tuple[pathlib.Path, ...]] = {}
        self.root_job = Job(
            cmds.cmd_mkdir(self.run_dir, self.saved_dir), "run-directory", 0
        )
        self.dag.add_job(self.root_job)

    def compile(self, root: Node) -> DAG:
        """Add a job for every distinct computation of the graph"""
        for node in root.walk():
            if node.identity in self.artifacts:
                continue
            method = getattr(self, f"_compile_{node.op}", None)
            if method is None:
                raise PlanError(f"No job for the operation '{node.op}'")
            inputs = [self.artifacts[x.identity] for x in node.inputs]
            self.artifacts[node.identity] = method(node, inputs)
        logger.info("Planned %s jobs in %s", len(self.dag), self.run_dir)
        return self.dag

    # Helpers

    def output(self, node: Node, suffix: str = "") -> pathlib.Path:
        return self.run_dir / f"{node.op}-{node.identity[:16]}{suffix}"

    def add_job(
        self,
        node: Node,
        pipeline: Pipeline,
        inputs: Sequence[Artifact],
        threads: int = 1,
        name: Optional[str] = None,
        dependencies: FrozenSet[Job] = frozenset(),
    ) -> Job:
        deps = set(_jobs(inputs) | dependencies)
        if not deps:
            deps = {self.root_job}
        job = Job(
            pipeline,
            name or f"{node.op}-{node.identity[:8]}",
            threads,
            save_label=node.save_label,
        )
        self.dag.add_job(job, deps)
        return job

    def produced(
        self,
        node: Node,
        pipeline: Pipeline,
        inputs: Sequence[Artifact],
        paths: Sequence[pathlib.Path],
        threads: int = 1,
    ) -> Artifact:
        job = self.add_job(node, pipeline, inputs, threads)
        return Artifact(paths, frozenset([job]))

    @staticmethod
    def single(artifact: Artifact) -> Location:
        if len(artifact.paths) != 1:
            raise PlanError(f"Expected a single file, got {artifact}")
        return artifact.paths[0]

    def read_group(self, node: Node) -> str:
        fragment_id = node.param("fragment_id") or node.identity[:8]
        sample_name = node.param("sample_name", "sample")
        return cmds.read_group(sample_name, fragment_id)

    # Inputs and structure

    def _compile_input_url(self, node, inputs):
        url = node.param("url")
        if "://" in url:
            return Artifact([url])
        return Artifact([pathlib.Path(url)])

    def _compile_bed(self, node, inputs):
        return inputs[0]

    def _compile_fastq(self, node, inputs):
        return Artifact([pathlib.Path(x) for x in node.param("files")])

    def _compile_bam(self, node, inputs):
        return Artifact([pathlib.Path(node.param("path"))])

    def _compile_mhc_alleles(self, node, inputs):
        return Artifact(alleles=tuple(node.param("names")))

    def _compile_list(self, node, inputs):
        return Artifact(jobs=_jobs(inputs), elements=inputs)

    _compile_pair = _compile_list

    def _select(self, artifact: Artifact, i: int) -> Artifact:
        if artifact.elements:
            return artifact.elements[i]
        return Artifact([artifact.paths[i]], artifact.jobs)

    def _compile_pair_first(self, node, inputs):
        return self._select(inputs[0], 0)

    def _compile_pair_second(self, node, inputs):
        return self._select(inputs[0], 1)

    def _compile_bam_to_fastq(self, node, inputs):
        n_mates = 2 if node.param("paired") else 1
        out = [
            self.output(node, f"-R{i + 1}.fastq.gz") for i in range(n_mates)
        ]
        cmd = cmds.cmd_bam_to_fastq(self.single(inputs[0]), out, self.cores)
        return self.produced(node, cmd, inputs, out, self.cores)

    def _compile_concat(self, node, inputs):
        elements = inputs[0].elements
        if not elements:
            raise PlanError(f"Nothing to concatenate in {node!r}")
        widths = {len(x.paths) for x in elements}
        if len(widths) != 1:
            raise PlanError(
                f"Cannot concatenate paired and single-end reads in {node!r}"
            )
        out = []
        jobs = []
        for i in range(widths.pop()):
            path = self.output(node, f"-R{i + 1}.fastq.gz")
            cmd = cmds.cmd_concat([x.paths[i] for x in elements], path)
            name = f"concat-{node.identity[:8]}-R{i + 1}"
            jobs.append(self.add_job(node, cmd, inputs, 0, name=name))
            out.append(path)
        return Artifact(out, frozenset(jobs))

    # Alignment

    def _compile_bwa_mem(self, node, inputs):
        reads_node = node.inputs[0]
        out = self.output(node, ".bam")
        rg = self.read_group(reads_node)
        if reads_node.op == "bam":
            cmd = cmds.cmd_bwa_mem_bam(
                self.single(inputs[0]),
                self.reference.fasta,
                out,
                rg,
                self.cores,
                paired=reads_node.param("pairing") == "PE",
                sorting=reads_node.param("sorting"),
            )
        else:
            cmd = cmds.cmd_bwa_mem(
                inputs[0].paths, self.reference.fasta, out, rg, self.cores
            )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_star(self, node, inputs):
        out = self.output(node, ".bam")
        cmd = cmds.cmd_star(
            inputs[0].paths,
            self.reference.star_index,
            self.output(node, "."),
            out,
            node.param("config"),
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_merge_bams(self, node, inputs):
        out = self.output(node, ".bam")
        in_bams = [self.single(x) for x in inputs[0].elements]
        if not in_bams:
            raise PlanError(f"No alignments to merge in {node!r}")
        cmd = cmds.cmd_samtools_merge(in_bams, out, self.cores)
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_picard_mark_duplicates(self, node, inputs):
        out = self.output(node, ".bam")
        cmd = cmds.cmd_mark_duplicates(
            self.single(inputs[0]),
            out,
            self.output(node, ".metrics.txt"),
            node.param("config"),
        )
        return self.produced(node, cmd, inputs, [out])

    def _compile_gatk_indel_realigner(self, node, inputs):
        out = self.output(node, ".bam")
        cmd = cmds.cmd_indel_realigner(
            [self.single(inputs[0])],
            self.output(node, ".intervals"),
            self.reference.fasta,
            node.param("config"),
            out_bam=out,
            cores=self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_gatk_indel_realigner_joint(self, node, inputs):
        in_bams = [self.single(x) for x in inputs[0].elements]
        out = [
            self.output(node, f"-{i + 1}.bam") for i in range(len(in_bams))
        ]
        nway_map = self.output(node, ".map")
        map_job = self.add_job(
            node,
            cmds.cmd_nway_map(list(zip(in_bams, out)), nway_map),
            [],
            0,
            name=f"nway-map-{node.identity[:8]}",
        )
        cmd = cmds.cmd_indel_realigner(
            in_bams,
            self.output(node, ".intervals"),
            self.reference.fasta,
            node.param("config"),
            out_map=nway_map,
            cores=self.cores,
        )
        job = self.add_job(
            node, cmd, inputs, self.cores, dependencies=frozenset([map_job])
        )
        return Artifact(out, frozenset([job]))

    def _compile_gatk_bqsr(self, node, inputs):
        out = self.output(node, ".bam")
        cmd = cmds.cmd_bqsr(
            self.single(inputs[0]),
            out,
            self.output(node, ".recal_table"),
            self.reference.fasta,
            self.reference.dbsnp,
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    # Variant calling

    def _compile_strelka(self, node, inputs):
        out = self.output(node, ".vcf.gz")
        cmd = cmds.cmd_strelka(
            self.single(inputs[0]),
            self.single(inputs[1]),
            self.reference.fasta,
            self.output(node, ".rundir"),
            out,
            node.param("config"),
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_mutect(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_mutect(
            self.single(inputs[0]),
            self.single(inputs[1]),
            self.reference.fasta,
            self.reference.dbsnp,
            self.reference.cosmic,
            out,
            node.param("config").parameters,
        )
        return self.produced(node, cmd, inputs, [out])

    def _compile_mutect2(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_mutect2(
            self.single(inputs[0]),
            self.single(inputs[1]),
            self.reference.fasta,
            self.reference.dbsnp,
            self.reference.cosmic,
            out,
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_gatk_haplotype_caller(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_haplotype_caller(
            self.single(inputs[0]),
            self.reference.fasta,
            self.reference.dbsnp,
            out,
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_varscan_somatic(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_varscan_somatic(
            self.single(inputs[0]),
            self.single(inputs[1]),
            self.reference.fasta,
            self.output(node),
            out,
        )
        return self.produced(node, cmd, inputs, [out])

    def _compile_somaticsniper(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_somaticsniper(
            self.single(inputs[0]),
            self.single(inputs[1]),
            self.reference.fasta,
            out,
        )
        return self.produced(node, cmd, inputs, [out])

    def _compile_filter_to_region(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_filter_to_region(
            self.single(inputs[0]), self.single(inputs[1]), out
        )
        return self.produced(node, cmd, inputs, [out], 0)

    def _compile_vcf_annotate_polyphen(self, node, inputs):
        out = self.output(node, ".vcf")
        cmd = cmds.cmd_vep_polyphen(
            self.single(inputs[0]),
            out,
            self.reference.fasta,
            self.reference.build,
            self.cores,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    # RNA

    def _compile_stringtie(self, node, inputs):
        out = self.output(node, ".gtf")
        cmd = cmds.cmd_stringtie(
            self.single(inputs[0]), self.reference.gtf, out, self.cores
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_flagstat(self, node, inputs):
        out = self.output(node, ".flagstat")
        cmd = cmds.cmd_flagstat(self.single(inputs[0]), out)
        return self.produced(node, cmd, inputs, [out])

    def _compile_seq2hla(self, node, inputs):
        out = self.output(node)
        cmd = cmds.cmd_seq2hla(inputs[0].paths, out, self.cores)
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_hlarp(self, node, inputs):
        out = self.output(node, ".txt")
        cmd = cmds.cmd_hlarp(self.single(inputs[0]), out)
        return self.produced(node, cmd, inputs, [out])

    # Neoantigens, QC and reporting

    def _compile_vaxrank(self, node, inputs):
        vcfs, bam, alleles = inputs
        out = self.output(node, ".txt")
        cmd = cmds.cmd_vaxrank(
            [self.single(x) for x in vcfs.elements],
            self.single(bam),
            node.param("predictor"),
            out,
            mhc_alleles=alleles.alleles,
            mhc_alleles_file=alleles.paths[0] if alleles.paths else None,
        )
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_fastqc(self, node, inputs):
        out = self.output(node)
        cmd = cmds.cmd_fastqc(inputs[0].paths, out, self.cores)
        return self.produced(node, cmd, inputs, [out], self.cores)

    def _compile_save(self, node, inputs):
        sources = inputs[0].paths
        label = sanitize_label(node.save_label)
        if len(sources) == 1:
            destinations = [self.saved_dir / (label + _suffix(sources[0]))]
        else:
            destinations = [
                self.saved_dir / f"{label}-{i + 1}{_suffix(src)}"
                for i, src in enumerate(sources)
            ]
        if not destinations:
            # Values such as explicit alleles have nothing to link
            return inputs[0]
        if node.save_label in self.saved:
            logger.warning("Save label used twice: %s", node.save_label)
        self.saved[node.save_label] = tuple(destinations)
        job = self.add_job(
            node,
            cmds.cmd_save(
                [_link_target(x, y) for x, y in zip(sources, destinations)],
                destinations,
            ),
            inputs,
            0,
            name=f"save-{label}",
        )
        return Artifact(destinations, frozenset([job]))

    def _compile_report(self, node, inputs):
        artifacts: Dict[str, List[str]] = {}
        vcfs: Dict[str, List[str]] = {}
        for slot, artifact in zip(node.param("slots"), inputs):
            paths = [str(x) for x in artifact.paths]
            if slot.startswith(VCF_SLOT_PREFIX):
                vcfs[slot[len(VCF_SLOT_PREFIX):]] = paths
            else:
                artifacts[slot] = paths
        manifest = {
            "run_name": node.param("run_name"),
            "bedfile": node.param("bedfile"),
            "artifacts": artifacts,
            "vcfs": vcfs,
            "metadata": [list(x) for x in node.param("metadata")],
        }
        name = sanitize_label(node.param("run_name"))
        out = self.run_dir / f"report-{name}.json"
        cmd = cmds.cmd_write_manifest(manifest, out)
        return self.produced(node, cmd, inputs, [out], 0)


def _suffix(path: pathlib.Path) -> str:
    return "".join(path.suffixes)


def _link_target(src: Location, link: pathlib.Path) -> str:
    """The target of `link` so that it points at `src`"""
    # Relative targets resolve from the directory holding the link
    if isinstance(src, str) or os.path.isabs(src) != link.is_absolute():
        return str(src)
    return os.path.relpath(src, link.parent)
