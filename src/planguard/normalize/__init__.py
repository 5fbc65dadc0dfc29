"""
Normalização de planos: extração de scripts, classificação de intenção,
passes de deduplicação, autofix de invariantes e a composição
`normalize_plan`.
"""

from .autofix import apply_distribution_autofix
from .dedup import (
    command_signature,
    prune_document_cycles,
    prune_exact_duplicates,
    prune_launch_cycles,
    prune_orphaned_placeholders,
    prune_redundant_read_only,
    prune_semantic_duplicates,
)
from .intent import (
    DEFAULT_LAYERS,
    GENERIC_LAYER,
    ONBOARDING_LAYER,
    Gate,
    IntentRule,
    RuleLayer,
    classify_script,
    classify_send_command,
)
from .script import extract_script, extract_script_from_doc_content
from .service import NormalizationResult, normalize_plan

__all__ = [
    "apply_distribution_autofix",
    "command_signature",
    "prune_document_cycles",
    "prune_exact_duplicates",
    "prune_launch_cycles",
    "prune_orphaned_placeholders",
    "prune_redundant_read_only",
    "prune_semantic_duplicates",
    "DEFAULT_LAYERS",
    "GENERIC_LAYER",
    "ONBOARDING_LAYER",
    "Gate",
    "IntentRule",
    "RuleLayer",
    "classify_script",
    "classify_send_command",
    "extract_script",
    "extract_script_from_doc_content",
    "NormalizationResult",
    "normalize_plan",
]
