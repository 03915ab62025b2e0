"""
Target profiles: per-ISA configuration for the guard generator.

A profile bundles the identifier rule table, the prefix used for the
instruction-id enum, the default allow-list of mnemonics and the line
emitted after the last constructor.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List

from .idmap import IdentifierRule, V850_RULES


@dataclass(frozen=True)
class TargetProfile:
    name: str
    description: str
    id_prefix: str
    rules: List[IdentifierRule] = field(default_factory=list)
    selection: FrozenSet[str] = frozenset()
    epilogue: str = "return true;"


# V850E2/V850E3 floating point extension
V850_FPU_SELECTION = frozenset([
    "absf.d", "absf.s",
    "addf.d", "addf.s",
    "ceilf.dl", "ceilf.dul", "ceilf.duw", "ceilf.dw",
    "ceilf.sl", "ceilf.sul", "ceilf.suw", "ceilf.sw",
    "cmovf.d", "cmovf.s",
    "cmpf.d", "cmpf.s",
    "cvtf.dl", "cvtf.ds", "cvtf.dul", "cvtf.duw", "cvtf.dw",
    "cvtf.ld", "cvtf.ls",
    "cvtf.sd", "cvtf.sl", "cvtf.sul", "cvtf.suw", "cvtf.sw",
    "cvtf.uld", "cvtf.uls", "cvtf.uwd", "cvtf.uws",
    "cvtf.wd", "cvtf.ws",
    "divf.d", "divf.s",
    "floorf.dl", "floorf.dul", "floorf.duw", "floorf.dw",
    "floorf.sl", "floorf.sul", "floorf.suw", "floorf.sw",
    "maddf.s",
    "maxf.d", "maxf.s",
    "minf.d", "minf.s",
    "msubf.s",
    "mulf.d", "mulf.s",
    "negf.d", "negf.s",
    "nmaddf.s", "nmsubf.s",
    "recipf.d", "recipf.s",
    "rsqrtf.d", "rsqrtf.s",
    "sqrtf.d", "sqrtf.s",
    "subf.d", "subf.s",
    "trfsr",
    "trncf.dl", "trncf.dul", "trncf.duw", "trncf.dw",
    "trncf.sl", "trncf.sul", "trncf.suw", "trncf.sw",
])


TARGET_PROFILES: Dict[str, TargetProfile] = {
    "v850_fpu": TargetProfile(
        name="v850_fpu",
        description="V850 FPU subset (Ghidra V850.slaspec)",
        id_prefix="V850_",
        rules=V850_RULES,
        selection=V850_FPU_SELECTION,
    ),
    "generic": TargetProfile(
        name="generic",
        description="Identity mapping, no default selection",
        id_prefix="INSN_",
    ),
}

DEFAULT_TARGET = "v850_fpu"


def get_profile(name: str) -> TargetProfile:
    if name not in TARGET_PROFILES:
        raise KeyError(f"Unknown target profile: {name}")
    return TARGET_PROFILES[name]
