"""Schemas for the rule catalogue listing."""
from typing import Dict, List, Optional

from pydantic import BaseModel

from xc_auditor.models.enums import ObjectType, RuleCategory, Severity


class RuleInfo(BaseModel):
    """Catalogue entry metadata (the check itself is not serialisable)."""
    id: str
    name: str
    description: str
    category: RuleCategory
    severity: Severity
    applies_to: List[ObjectType]
    tenant_wide: bool
    remediation: str
    reference_url: Optional[str] = None


class RuleStats(BaseModel):
    """Catalogue statistics."""
    total: int
    by_category: Dict[str, int]
    by_severity: Dict[str, int]
    by_object_type: Dict[str, int]


class CategoryInfo(BaseModel):
    """Display metadata for a rule category."""
    category: RuleCategory
    label: str
    description: str
    rule_count: int
