"""
The variant callers run on the tumor/normal pair
"""

from typing import Any, Callable, List, NamedTuple, Optional

from .logging import get_logger
from .parameters import ParameterSet
from .semantics import Semantics
from .tools import MUTECT_CONFIG, STRELKA_CONFIG

logger = get_logger(__name__)

Repr = Any


class CallerSpec(NamedTuple):
    """A row of the caller registry"""

    name: str
    is_somatic: bool
    enabled: Callable[[ParameterSet], bool]
    build: Callable[[Semantics, Repr, Repr], Repr]


class NamedCall(NamedTuple):
    name: str
    is_somatic: bool
    vcf: Repr


def _always(params: ParameterSet) -> bool:
    return True


CALLERS: List[CallerSpec] = [
    CallerSpec(
        "strelka",
        True,
        _always,
        lambda bfx, normal, tumor: bfx.strelka(
            normal, tumor, configuration=STRELKA_CONFIG
        ),
    ),
    CallerSpec(
        "mutect",
        True,
        _always,
        lambda bfx, normal, tumor: bfx.mutect(
            normal, tumor, configuration=MUTECT_CONFIG
        ),
    ),
    CallerSpec(
        "haplo-normal",
        False,
        _always,
        lambda bfx, normal, tumor: bfx.gatk_haplotype_caller(normal),
    ),
    CallerSpec(
        "haplo-tumor",
        False,
        _always,
        lambda bfx, normal, tumor: bfx.gatk_haplotype_caller(tumor),
    ),
    CallerSpec(
        "mutect2",
        True,
        lambda params: params.with_mutect2,
        lambda bfx, normal, tumor: bfx.mutect2(normal, tumor),
    ),
    CallerSpec(
        "varscan",
        True,
        lambda params: params.with_varscan,
        lambda bfx, normal, tumor: bfx.varscan_somatic(normal, tumor),
    ),
    CallerSpec(
        "somatic-sniper",
        True,
        lambda params: params.with_somaticsniper,
        lambda bfx, normal, tumor: bfx.somaticsniper(normal, tumor),
    ),
]


def call_variants(
    bfx: Semantics,
    params: ParameterSet,
    normal: Repr,
    tumor: Repr,
    callers: Optional[List[CallerSpec]] = None,
) -> List[NamedCall]:
    """Run every enabled caller, restricted to `params.bedfile` if set"""
    calls: List[NamedCall] = []
    for spec in CALLERS if callers is None else callers:
        if not spec.enabled(params):
            logger.debug("Skipping disabled caller: %s", spec.name)
            continue
        vcf = spec.build(bfx, normal, tumor)
        calls.append(NamedCall(spec.name, spec.is_somatic, vcf))

    if params.bedfile is None:
        return calls

    logger.debug("Restricting variant calls to %s", params.bedfile)
    bed = bfx.bed(bfx.input_url(params.bedfile))
    return [
        NamedCall(
            call.name, call.is_somatic, bfx.filter_to_region(call.vcf, bed)
        )
        for call in calls
    ]


def somatic_vcfs(calls: List[NamedCall]) -> List[Repr]:
    """The call sets of the somatic callers only"""
    return [call.vcf for call in calls if call.is_somatic]
