"""
sleigh-guardgen: disassembler guard code from SLEIGH constructors
=================================================================
Turns the constructors of a parsed SLEIGH instruction-set model into
C guard code (match condition, instruction id, operand format) for a
hand-written disassembler of one instruction subset.

Architecture:
    ┌────────────┐    ┌──────────┐    ┌────────────┐    ┌───────────┐
    │ JSON model │───>│  Loader  │───>│ Selection  │───>│  CodeGen  │───> C text
    │ (.json)    │    │ (Sleigh) │    │ (profile)  │    │ (guards)  │
    └────────────┘    └──────────┘    └────────────┘    └─────┬─────┘
                                                              │
                                             ┌────────────────┴──┐
                                             │ expression  idmap │
                                             └───────────────────┘

    - model.py:      Dataclass object model of the parsed description
    - loader.py:     JSON dump -> model
    - expression.py: Postfix disassembly expression -> tree -> text
    - idmap.py:      Field/table names -> C accessors and printf specifiers
    - codegen.py:    Per-constructor guard emission
    - profiles.py:   Per-ISA configuration (rules, id prefix, allow-list)
"""

__version__ = "0.1.0"

from .errors import (
    GuardGenError, MalformedExpressionError, UnsupportedValueKindError,
    SelectionMismatchError, ModelError,
)
from .model import *
from .expression import reconstruct, render, render_expression
from .idmap import IdentifierMapper, IdentifierRule, V850_RULES
from .profiles import TargetProfile, TARGET_PROFILES, get_profile
from .codegen import (
    GuardCodeGenerator, GenerationReport, Placeholder, Rendered,
    select_constructors, generate_source,
)
from .loader import load_model, load_model_file
