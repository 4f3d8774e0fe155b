"""
Unit tests for the run parameters
"""

import json
import os
import sys

import pytest

# Add the parent directory to the path so we can import epidisco_cli
sys.path.insert(
    0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
)

from epidisco_cli.exceptions import (  # noqa: E402
    InputFormatError,
    MissingExperimentNameError,
    MissingReferenceBuildError,
    MissingSampleError,
    ParameterError,
)
from epidisco_cli.parameters import (  # noqa: E402
    FLAGS,
    PairedEndFastq,
    PairedEndFromBam,
    ParameterSet,
    SampleInput,
    SingleEndFastq,
    SingleEndFromBam,
    fragment_from_dict,
    metadata,
    run_directory,
    run_name,
)
from tests.utils.test_helpers import (  # noqa: E402
    MockFileSystem,
    fastq_sample,
    make_params,
    params_dict,
)


class TestRunNaming:
    """Run names and run directories"""

    def test_run_name_without_rna(self):
        assert run_name(make_params()) == "E1-N1-T1-noRNA-b37"

    def test_run_name_with_rna(self):
        params = make_params(rna=fastq_sample("R1"), reference_build="mm10")
        assert run_name(params) == "E1-N1-T1-R1-mm10"

    def test_run_name_ignores_flags(self):
        base = make_params()
        flagged = base.replace(
            with_topiary=True,
            with_seq2hla=True,
            with_mutect2=True,
            with_varscan=True,
            with_somaticsniper=True,
        )
        assert run_name(flagged) == run_name(base) == "E1-N1-T1-noRNA-b37"
        for flag in FLAGS:
            assert run_name(base.replace(**{flag: True})) == run_name(base)

    def test_run_directory_ignores_samples(self):
        base = make_params()
        other = make_params(
            normal=fastq_sample("N2"),
            tumor=fastq_sample("T2", n_fragments=3),
            rna=fastq_sample("R1"),
            with_mutect2=True,
        )
        assert run_directory(base) == "E1-b37"
        assert run_directory(other) == run_directory(base)

    def test_run_directory_depends_on_build(self):
        assert run_directory(make_params(reference_build="hg19")) == "E1-hg19"


class TestSampleDescription:
    """Human readable summaries of the sample inputs"""

    def test_no_fragment(self):
        assert SampleInput("N1", []).describe() == "N1, NONE"

    def test_one_fragment(self):
        sample = SampleInput("T1", [PairedEndFastq("a", "b")])
        assert sample.describe() == "T1, 1 fragment: Paired-end FASTQ"

    def test_homogeneous_fragments(self):
        sample = SampleInput(
            "T1", [SingleEndFastq("a"), SingleEndFastq("b")]
        )
        assert sample.describe() == "T1, 2 fragments: all Single-end FASTQ"

    def test_heterogeneous_fragments(self):
        sample = SampleInput(
            "T1",
            [
                PairedEndFastq("a", "b"),
                SingleEndFastq("c"),
                PairedEndFromBam("d.bam"),
            ],
        )
        assert sample.describe() == "T1, 3 fragments: heterogeneous"

    def test_bam_fragments(self):
        sample = SampleInput(
            "N1", [SingleEndFromBam("a.bam"), SingleEndFromBam("b.bam")]
        )
        assert sample.describe() == "N1, 2 fragments: all Single-end-from-bam"


class TestMetadata:
    """Metadata of the report"""

    def test_without_alleles_or_rna(self):
        res = dict(metadata(make_params()))
        assert res["MHC Alleles"] == "None provided"
        assert res["Reference-build"] == "b37"
        assert res["Normal-input"] == "N1, 1 fragment: Paired-end FASTQ"
        assert res["Tumor-input"] == "T1, 1 fragment: Paired-end FASTQ"
        assert res["RNA-input"] == "N/A"

    def test_with_alleles_and_rna(self):
        params = make_params(
            mhc_alleles=["HLA-A*02:01", "HLA-B*07:02"],
            rna=fastq_sample("R1", n_fragments=2),
        )
        res = metadata(params)
        assert [k for k, _ in res] == [
            "MHC Alleles",
            "Reference-build",
            "Normal-input",
            "Tumor-input",
            "RNA-input",
        ]
        assert res[0][1] == "Alleles: [HLA-A*02:01; HLA-B*07:02]"
        assert res[4][1] == "R1, 2 fragments: all Paired-end FASTQ"


class TestValidation:
    """A parameter set is valid once built"""

    def test_missing_experiment_name(self):
        with pytest.raises(MissingExperimentNameError):
            make_params(experiment_name="")

    def test_missing_reference_build(self):
        with pytest.raises(MissingReferenceBuildError):
            make_params(reference_build="")

    def test_missing_samples(self):
        with pytest.raises(MissingSampleError) as e:
            make_params(normal=None)
        assert e.value.which == "normal"
        with pytest.raises(MissingSampleError) as e:
            make_params(tumor=None)
        assert e.value.which == "tumor"

    def test_mhc_alleles_are_frozen(self):
        params = make_params(mhc_alleles=["HLA-A*02:01"])
        assert params.mhc_alleles == ("HLA-A*02:01",)
        assert hash(params) == hash(make_params(mhc_alleles=["HLA-A*02:01"]))

    def test_replace(self):
        params = make_params()
        other = params.replace(with_varscan=True)
        assert not params.with_varscan
        assert other.with_varscan
        assert other.normal == params.normal


class TestFromDict:
    """Parameter files"""

    def test_round_trip(self):
        params = ParameterSet.from_dict(params_dict(with_mutect2=True))
        assert params.experiment_name == "E1"
        assert params.normal.sample_name == "N1"
        assert params.normal.fragments == (
            PairedEndFastq("/data/N1_R1.fastq.gz", "/data/N1_R2.fastq.gz"),
        )
        assert params.with_mutect2
        assert params.rna is None

    def test_missing_fields_fail_validation(self):
        d = params_dict()
        del d["experiment_name"]
        with pytest.raises(MissingExperimentNameError):
            ParameterSet.from_dict(d)
        d = params_dict()
        del d["tumor"]
        with pytest.raises(MissingSampleError):
            ParameterSet.from_dict(d)

    def test_unknown_keys_are_ignored(self):
        params = ParameterSet.from_dict(params_dict(colour="blue"))
        assert run_name(params) == "E1-N1-T1-noRNA-b37"

    def test_bam_fragment(self):
        fragment = fragment_from_dict(
            {
                "kind": "bam",
                "pairing": "SE",
                "path": "/data/x.bam",
                "sorting": "read_name",
                "reference_build": "hg19",
            }
        )
        assert isinstance(fragment, SingleEndFromBam)
        assert fragment.sorting == "read_name"
        assert fragment.pairing == "SE"

    @pytest.mark.parametrize(
        "d",
        [
            {"kind": "PE", "r1": "a"},
            {"kind": "XX"},
            {"kind": "bam", "pairing": "both", "path": "x.bam"},
            {"kind": "bam", "pairing": "PE"},
        ],
    )
    def test_invalid_fragments(self, d):
        with pytest.raises(InputFormatError):
            fragment_from_dict(d)

    def test_sample_without_name(self):
        with pytest.raises(ParameterError):
            SampleInput.from_dict({"fragments": []})

    def test_sample_to_dict(self):
        sample = fastq_sample("N1")
        assert SampleInput.from_dict(sample.to_dict()) == sample

    def test_alleles_must_be_a_list(self):
        with pytest.raises(InputFormatError):
            ParameterSet.from_dict(params_dict(mhc_alleles="HLA-A*02:01"))
        with pytest.raises(InputFormatError):
            ParameterSet.from_dict(params_dict(mhc_alleles=["HLA-A*02:01", 3]))
        params = ParameterSet.from_dict(
            params_dict(mhc_alleles=["HLA-A*02:01"])
        )
        assert params.mhc_alleles == ("HLA-A*02:01",)

    @pytest.mark.parametrize("flag", FLAGS)
    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_flags_must_be_booleans(self, flag, value):
        with pytest.raises(InputFormatError):
            ParameterSet.from_dict(params_dict(**{flag: value}))

    def test_boolean_flags(self):
        params = ParameterSet.from_dict(
            params_dict(with_varscan=False, with_seq2hla=True)
        )
        assert not params.with_varscan
        assert params.with_seq2hla


class TestFromJson:
    """Parameter files read from disk"""

    def setup_method(self):
        self.fs = MockFileSystem()

    def teardown_method(self):
        self.fs.cleanup()

    def test_read(self):
        path = self.fs.create_parameters(bedfile="/data/exome.bed")
        params = ParameterSet.from_json(path)
        assert run_name(params) == "E1-N1-T1-noRNA-b37"
        assert params.bedfile == "/data/exome.bed"

    def test_overrides(self):
        path = self.fs.create_parameters(with_mutect2=False)
        params = ParameterSet.from_json(
            path, experiment_name="E2", with_mutect2=True
        )
        assert params.experiment_name == "E2"
        assert params.with_mutect2

    def test_not_an_object(self):
        path = self.fs.create_file("list.json", json.dumps([1, 2]).encode())
        with pytest.raises(InputFormatError):
            ParameterSet.from_json(path)

    def test_invalid_json(self):
        path = self.fs.create_file("bad.json", b"{")
        with pytest.raises(ValueError):
            ParameterSet.from_json(path)
