"""
Unit tests for the graph nodes
"""

import os
import sys

import pytest

# Add the parent directory to the path so we can import epidisco_cli
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
)

from epidisco_cli.exceptions import PlanError  # noqa: E402
from epidisco_cli.graph import GraphSemantics, Node  # noqa: E402
from epidisco_cli.parameters import (  # noqa: E402
    PairedEndFastq,
    SampleInput,
    SingleEndFromBam,
)
from epidisco_cli.tools import (  # noqa: E402
    MARK_DUPS_CONFIG,
    MarkDuplicatesConfig,
)


class TestNode:
    """Immutability and structural identity"""

    def setup_method(self):
        self.bfx = GraphSemantics()
        self.fastq = self.bfx.fastq("N1", PairedEndFastq("a", "b", "f1"))

    def test_immutable(self):
        with pytest.raises(AttributeError):
            self.fastq.op = "bam"
        with pytest.raises(AttributeError):
            del self.fastq.kind

    def test_structural_identity(self):
        other = self.bfx.fastq("N1", PairedEndFastq("a", "b", "f1"))
        assert other is not self.fastq
        assert other == self.fastq
        assert other.identity == self.fastq.identity
        assert len({other, self.fastq}) == 1

    def test_identity_depends_on_inputs(self):
        a = self.bfx.bwa_mem(self.fastq, "b37")
        b = self.bfx.bwa_mem(
            self.bfx.fastq("N1", PairedEndFastq("a", "c", "f1")), "b37"
        )
        assert a != b
        assert a != self.bfx.bwa_mem(self.fastq, "hg19")

    def test_identity_depends_on_save_label(self):
        bam = self.bfx.bwa_mem(self.fastq, "b37")
        assert self.bfx.save("x", bam) != self.bfx.save("y", bam)
        assert self.bfx.save("x", bam).kind == "bam"

    def test_identity_depends_on_configuration(self):
        bam = self.bfx.bwa_mem(self.fastq, "b37")
        a = self.bfx.picard_mark_duplicates(bam, MARK_DUPS_CONFIG)
        b = self.bfx.picard_mark_duplicates(
            bam, MarkDuplicatesConfig("default", remove_duplicates=True)
        )
        assert a != b
        assert a.param("config") == MARK_DUPS_CONFIG

    def test_walk_visits_shared_nodes_once(self):
        bam = self.bfx.bwa_mem(self.fastq, "b37")
        vcf = self.bfx.strelka(bam, bam, None)
        nodes = list(vcf.walk())
        assert [x.op for x in nodes] == ["fastq", "bwa_mem", "strelka"]
        assert vcf.find("bwa_mem") == [bam]

    def test_to_dict(self):
        res = self.fastq.to_dict()
        assert res["op"] == "fastq"
        assert res["params"]["files"] == ["a", "b"]
        assert res["params"]["sample_name"] == "N1"
        assert res["inputs"] == []
        bam = self.bfx.picard_mark_duplicates(self.fastq, MARK_DUPS_CONFIG)
        config = bam.to_dict()["params"]["config"]
        assert config["MarkDuplicates.remove_duplicates"] is False


class TestGraphSemantics:
    """The node-producing operations"""

    def setup_method(self):
        self.bfx = GraphSemantics()

    def test_fastq_of_input(self):
        sample = SampleInput(
            "T1",
            [PairedEndFastq("a", "b"), SingleEndFromBam("/data/t.bam")],
        )
        res = self.bfx.fastq_of_input(sample)
        assert res.op == "list"
        first, second = res.inputs
        assert first.op == "fastq"
        assert second.op == "bam_to_fastq"
        assert second.param("paired") is False
        assert second.inputs[0].param("path") == "/data/t.bam"

    def test_fastq_rejects_bam_fragments(self):
        with pytest.raises(PlanError):
            self.bfx.fastq("T1", SingleEndFromBam("/data/t.bam"))

    def test_list_map(self):
        lst = self.bfx.list_(
            [self.bfx.input_url("a"), self.bfx.input_url("b")]
        )
        res = self.bfx.list_map(lst, self.bfx.bed)
        assert res.op == "list"
        assert [x.op for x in res.inputs] == ["bed", "bed"]
        with pytest.raises(PlanError):
            self.bfx.list_map(self.bfx.input_url("a"), self.bfx.bed)

    def test_pair_projections(self):
        a = self.bfx.input_url("a")
        b = self.bfx.input_url("b")
        pair = self.bfx.pair(a, b)
        assert self.bfx.pair_first(pair) != self.bfx.pair_second(pair)
        assert self.bfx.pair_first(pair).kind == "bam"

    def test_vaxrank_wraps_vcfs(self):
        vcfs = [self.bfx.input_url("a.vcf"), self.bfx.input_url("b.vcf")]
        res = self.bfx.vaxrank(
            vcfs,
            self.bfx.input_url("rna.bam"),
            "NetMHCcons",
            self.bfx.mhc_alleles(["HLA-A*02:01"]),
        )
        assert res.inputs[0].op == "list"
        assert list(res.inputs[0].inputs) == vcfs
        assert res.param("predictor") == "NetMHCcons"
        assert res.inputs[2].param("names") == ("HLA-A*02:01",)

    def test_node_constructor(self):
        node = Node("file", "input_url", params={"url": "x"})
        assert node.param("url") == "x"
        assert node.param("missing", 3) == 3
        assert "input_url" in repr(node)
