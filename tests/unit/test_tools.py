"""
Unit tests for the tool configurations and the report
"""

import dataclasses
import os
import sys

import pytest

# Add the parent directory to the path so we can import epidisco_cli
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
)

from epidisco_cli.report import Report  # noqa: E402
from epidisco_cli.tools import (  # noqa: E402
    INDEL_REALIGNER_CONFIG,
    STAR_CONFIG,
    IndelRealignerConfig,
    MarkDuplicatesConfig,
)


class TestToolConfig:
    def test_items(self):
        assert STAR_CONFIG.to_dict() == {
            "STAR.name": "mapq_default_60",
            "STAR.overhang_length": None,
            "STAR.parameters": (),
            "STAR.sam_mapq_unique": 60,
        }

    def test_equality(self):
        assert MarkDuplicatesConfig() == MarkDuplicatesConfig("default")
        assert MarkDuplicatesConfig() != MarkDuplicatesConfig(
            remove_duplicates=True
        )
        assert len({MarkDuplicatesConfig(), MarkDuplicatesConfig()}) == 1

    def test_realigner_filters(self):
        realigner, target = INDEL_REALIGNER_CONFIG
        assert realigner.tool == "IndelRealigner"
        assert target.tool == "RealignerTargetCreator"
        assert realigner.filter_args() == target.filter_args()
        assert IndelRealignerConfig("none").filter_args() == []
        extra = IndelRealignerConfig(
            "x", filter_bases_not_stored=True, parameters=["--maxReads", "5"]
        )
        assert extra.filter_args() == [
            "--filter_bases_not_stored",
            "--maxReads",
            "5",
        ]


class TestReport:
    def setup_method(self):
        self.report = Report(
            "E1-N1-T1-noRNA-b37",
            qc_normal="qcn",
            qc_tumor="qct",
            normal_bam="nb",
            tumor_bam="tb",
            normal_bam_flagstat="nf",
            tumor_bam_flagstat="tf",
            vcfs=[("strelka", "v1"), ("mutect", "v2")],
            metadata=[("Reference-build", "b37")],
        )

    def test_slots(self):
        slots = self.report.slots()
        assert [slot for slot, _ in slots] == [
            "qc_normal",
            "qc_tumor",
            "normal_bam",
            "tumor_bam",
            "normal_bam_flagstat",
            "tumor_bam_flagstat",
            "vcf:strelka",
            "vcf:mutect",
        ]

    def test_to_dict(self):
        res = self.report.to_dict(render=str.upper)
        assert res["run_name"] == "E1-N1-T1-noRNA-b37"
        assert res["nodes"]["normal_bam"] == "NB"
        assert "rna_bam" not in res["nodes"]
        assert res["vcfs"] == {"strelka": "V1", "mutect": "V2"}
        assert res["metadata"] == [["Reference-build", "b37"]]

    def test_immutable(self):
        assert self.report.vcfs == (("strelka", "v1"), ("mutect", "v2"))
        assert self.report.metadata == (("Reference-build", "b37"),)
        with pytest.raises(dataclasses.FrozenInstanceError):
            self.report.vaxrank = "vx"
        with pytest.raises(dataclasses.FrozenInstanceError):
            self.report.vcfs = ()
