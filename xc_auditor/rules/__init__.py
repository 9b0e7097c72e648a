"""
Security rule catalogue.
"""
from collections import Counter
from typing import Dict, List, Optional

from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.access_control import ACCESS_CONTROL_RULES
from xc_auditor.rules.base import SecurityRule
from xc_auditor.rules.bot_ddos import BOT_DDOS_RULES
from xc_auditor.rules.logging_rules import LOGGING_RULES
from xc_auditor.rules.origin import ORIGIN_RULES
from xc_auditor.rules.tls_ssl import TLS_SSL_RULES
from xc_auditor.rules.waf import WAF_RULES
from xc_auditor.schemas.rule import CategoryInfo, RuleStats

ALL_RULES: List[SecurityRule] = [
    *TLS_SSL_RULES,
    *WAF_RULES,
    *ORIGIN_RULES,
    *BOT_DDOS_RULES,
    *ACCESS_CONTROL_RULES,
    *LOGGING_RULES,
]

CATEGORY_INFO: Dict[RuleCategory, Dict[str, str]] = {
    RuleCategory.TLS_SSL: {
        "label": "TLS/SSL Security",
        "description": "Encryption in transit between clients, load balancers and origins",
    },
    RuleCategory.WAF: {
        "label": "Web Application Firewall",
        "description": "App firewall assignment, enforcement mode and signature coverage",
    },
    RuleCategory.BOT_DEFENSE: {
        "label": "Bot Defense",
        "description": "Automated traffic and malicious user mitigation",
    },
    RuleCategory.API_SECURITY: {
        "label": "API Security",
        "description": "API discovery, definitions and schema validation",
    },
    RuleCategory.DDOS: {
        "label": "DDoS Protection",
        "description": "Layer 7 DDoS detection and mitigation",
    },
    RuleCategory.ORIGIN: {
        "label": "Origin Security",
        "description": "Origin pool health checks, timeouts and exposure",
    },
    RuleCategory.ACCESS_CONTROL: {
        "label": "Access Control",
        "description": "Service policies, IP reputation and trusted clients",
    },
    RuleCategory.LOGGING: {
        "label": "Logging & Monitoring",
        "description": "Log export to SIEM and storage destinations",
    },
    RuleCategory.ALERTING: {
        "label": "Alerting",
        "description": "Alert policies and notification receivers",
    },
    RuleCategory.USER_IDENTIFICATION: {
        "label": "User Identification",
        "description": "How clients are identified for rate limiting and detection",
    },
    RuleCategory.RATE_LIMITING: {
        "label": "Rate Limiting",
        "description": "Request rate limits protecting origins from abuse",
    },
    RuleCategory.CLIENT_SECURITY: {
        "label": "Client-Side Security",
        "description": "Browser-side script protection and error page hygiene",
    },
}


def get_rules_by_category(category: RuleCategory, rules: Optional[List[SecurityRule]] = None) -> List[SecurityRule]:
    return [rule for rule in (rules if rules is not None else ALL_RULES) if rule.category == category]


def get_rules_by_severity(severity: Severity, rules: Optional[List[SecurityRule]] = None) -> List[SecurityRule]:
    return [rule for rule in (rules if rules is not None else ALL_RULES) if rule.severity == severity]


def get_rules_by_object_type(
    object_type: ObjectType, rules: Optional[List[SecurityRule]] = None
) -> List[SecurityRule]:
    return [rule for rule in (rules if rules is not None else ALL_RULES) if object_type in rule.applies_to]


def get_rule_by_id(rule_id: str) -> Optional[SecurityRule]:
    """Look up a rule by id (case-insensitive)."""
    wanted = rule_id.upper()
    for rule in ALL_RULES:
        if rule.id.upper() == wanted:
            return rule
    return None


def get_rule_stats(rules: Optional[List[SecurityRule]] = None) -> RuleStats:
    """Counts of rules per category, severity and object type."""
    rules = rules if rules is not None else ALL_RULES
    by_object_type: Counter = Counter()
    for rule in rules:
        by_object_type.update(object_type.value for object_type in rule.applies_to)
    return RuleStats(
        total=len(rules),
        by_category=dict(Counter(rule.category.value for rule in rules)),
        by_severity=dict(Counter(rule.severity.value for rule in rules)),
        by_object_type=dict(by_object_type),
    )


def get_categories(rules: Optional[List[SecurityRule]] = None) -> List[CategoryInfo]:
    """Category display metadata with the number of rules in each."""
    rules = rules if rules is not None else ALL_RULES
    counts = Counter(rule.category for rule in rules)
    return [
        CategoryInfo(category=category, label=info["label"], description=info["description"],
                     rule_count=counts.get(category, 0))
        for category, info in CATEGORY_INFO.items()
    ]


__all__ = [
    "ALL_RULES",
    "CATEGORY_INFO",
    "SecurityRule",
    "get_categories",
    "get_rule_by_id",
    "get_rule_stats",
    "get_rules_by_category",
    "get_rules_by_object_type",
    "get_rules_by_severity",
]
