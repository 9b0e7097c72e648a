"""
Rule catalogue endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules import (
    ALL_RULES,
    get_categories,
    get_rule_by_id,
    get_rule_stats,
    get_rules_by_category,
    get_rules_by_object_type,
    get_rules_by_severity,
)
from xc_auditor.schemas.rule import CategoryInfo, RuleInfo, RuleStats

router = APIRouter()


@router.get("", response_model=List[RuleInfo])
async def list_rules(
    category: Optional[RuleCategory] = Query(None, description="Filter by category"),
    severity: Optional[Severity] = Query(None, description="Filter by severity"),
    object_type: Optional[ObjectType] = Query(None, description="Filter by object type"),
):
    """List built-in security rules with optional filters."""
    rules = list(ALL_RULES)
    if category:
        rules = get_rules_by_category(category, rules)
    if severity:
        rules = get_rules_by_severity(severity, rules)
    if object_type:
        rules = get_rules_by_object_type(object_type, rules)
    return [rule.info() for rule in rules]


@router.get("/stats", response_model=RuleStats)
async def rule_stats():
    return get_rule_stats()


@router.get("/categories", response_model=List[CategoryInfo])
async def list_categories():
    return get_categories()


@router.get("/{rule_id}", response_model=RuleInfo)
async def get_rule(rule_id: str):
    """Get a specific rule by id, e.g. SEC-001."""
    rule = get_rule_by_id(rule_id)
    if not rule:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Rule with id {rule_id} not found",
        )
    return rule.info()
