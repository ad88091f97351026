"""Vault reading: frontmatter codec, index builder and update planner."""

from .frontmatter import (
    Frontmatter,
    ParsedNote,
    parse_frontmatter,
    parse_timestamp,
    parse_iso_timestamp,
    render,
    substitute_fields,
    current_timestamp,
)
from .scanner import VaultScanner, read_note, scan_vault
from .planner import (
    UpdateAction,
    PlanItem,
    UpdatePlan,
    classify,
    plan_updates,
    format_plan_summary,
)

__all__ = [
    "Frontmatter",
    "ParsedNote",
    "parse_frontmatter",
    "parse_timestamp",
    "parse_iso_timestamp",
    "render",
    "substitute_fields",
    "current_timestamp",
    "VaultScanner",
    "scan_vault",
    "read_note",
    "UpdateAction",
    "PlanItem",
    "UpdatePlan",
    "classify",
    "plan_updates",
    "format_plan_summary",
]
