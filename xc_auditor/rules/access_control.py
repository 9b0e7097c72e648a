"""
Access control, API protection, user identification and alerting rules.
"""
from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import (
    as_dict,
    as_list,
    dig,
    get_metadata,
    get_spec,
    has_key,
    object_namespace,
    ref_name,
    ref_namespace,
)

LB_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-networking/http-load-balancer"
ALERT_DOCS = "https://docs.cloud.f5.com/docs/how-to/observability/alerts"

# Alert receiver integrations that deliver notifications somewhere a human will see them
RECEIVER_TYPES = ("email", "slack", "pagerduty", "webhook", "opsgenie")


class ApiProtectionRule(SecurityRule):
    id = "SEC-012"
    name = "API Discovery and Protection"
    description = "API definitions and discovery let the platform validate and inventory API traffic."
    category = RuleCategory.API_SECURITY
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable API discovery and attach an API definition where the application exposes APIs."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/apiep-discovery-control"

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_api_definition") and has_key(spec, "disable_api_discovery"):
            return self.warned("API definition and API discovery are both disabled", "disabled", "enabled")

        features = [
            key
            for key in ("api_definition", "api_definitions", "enable_api_discovery", "api_protection_rules",
                        "api_specification")
            if has_key(spec, key)
        ]
        if features:
            return self.passed(f"API protection configured: {', '.join(features)}", features, "enabled")

        return self.skipped("No API protection configured (optional for non-API applications)")


class ClientSideDefenseRule(SecurityRule):
    id = "SEC-014"
    name = "Client-Side Defense"
    description = "Client-side defense detects malicious scripts injected into pages served to browsers."
    category = RuleCategory.CLIENT_SECURITY
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable client-side defense on load balancers serving browser traffic."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/client-side-defense"

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_client_side_defense"):
            return self.warned("Client-side defense is disabled", "disabled", "enabled")

        if dig(spec, "client_side_defense", "policy"):
            return self.passed("Client-side defense is enabled", "enabled", "enabled")

        return self.skipped("Client-side defense not configured (optional)")


class IpReputationRule(SecurityRule):
    id = "SEC-015"
    name = "IP Reputation Enabled"
    description = "IP reputation blocks requests from sources known for spam, scanning, botnets and proxies."
    category = RuleCategory.ACCESS_CONTROL
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable IP threat categories on the load balancer."
    reference_url = LB_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_ip_reputation"):
            return self.failed("IP reputation is disabled", "disabled", "enabled")

        reputation = spec.get("enable_ip_reputation") or spec.get("ip_reputation")
        if has_key(spec, "enable_ip_reputation") or reputation:
            categories = as_list(as_dict(reputation).get("ip_threat_categories"))
            return self.passed(
                "IP reputation is enabled",
                {"threat_categories": categories} if categories else "enabled",
                "enabled",
            )

        return self.warned("IP reputation is not configured", None, "enabled")


class UserIdentificationRule(SecurityRule):
    id = "SEC-016"
    name = "User Identification Policy"
    description = (
        "Identifying users by more than client IP keeps rate limiting and malicious "
        "user detection accurate behind NAT and proxies."
    )
    category = RuleCategory.USER_IDENTIFICATION
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Attach a user identification policy that uses cookies, headers or TLS fingerprints."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/user-identification"

    def check(self, obj, context):
        spec = get_spec(obj)
        lb_namespace = object_namespace(obj, default="default")

        if has_key(spec, "user_id_client_ip"):
            return self.warned(
                "User identification relies on client IP only",
                "client_ip",
                "Custom user identification policy",
            )

        ref = spec.get("user_identification")
        policy_name = ref_name(ref)
        if policy_name:
            policy = context.get_user_identification(ref_namespace(ref, lb_namespace), policy_name)
            rules = as_list(get_spec(policy).get("rules")) if policy is not None else []
            if len(rules) > 1:
                return self.passed(
                    f'User identification policy "{policy_name}" uses {len(rules)} identifiers',
                    policy_name,
                    "Custom user identification policy",
                )
            return self.passed(
                f'User identification policy "{policy_name}" is assigned',
                policy_name,
                "Custom user identification policy",
            )

        return self.warned("No user identification policy configured", None, "Custom user identification policy")


class RateLimitingRule(SecurityRule):
    id = "SEC-018"
    name = "Rate Limiting Configured"
    description = "Rate limiting protects origins from abuse and request floods."
    category = RuleCategory.RATE_LIMITING
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Configure a rate limiter on the load balancer, at least for sensitive endpoints."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/user-rate-limit"

    def check(self, obj, context):
        spec = get_spec(obj)
        limiter = ref_name(spec.get("rate_limiter"))
        if limiter:
            return self.passed(f'Rate limiter "{limiter}" is assigned', limiter, "Rate limiting configured")
        if spec.get("rate_limit"):
            return self.passed("Rate limiting is configured", "rate_limit", "Rate limiting configured")
        return self.warned("No rate limiting configured", None, "Rate limiting configured")


class TrustedClientsRule(SecurityRule):
    id = "SEC-019"
    name = "Trusted Client Rules"
    description = "Trusted client rules should be reviewed: they bypass security processing for listed sources."
    category = RuleCategory.ACCESS_CONTROL
    severity = Severity.LOW
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Keep the trusted client list minimal and review it periodically."
    reference_url = LB_DOCS

    def check(self, obj, context):
        trusted = as_list(get_spec(obj).get("trusted_clients"))
        if trusted:
            return self.passed(f"{len(trusted)} trusted client rule(s) configured", len(trusted))
        return self.skipped("No trusted client rules configured")


class AlertPolicyRule(SecurityRule):
    id = "SEC-020"
    name = "Alert Policy Configured"
    description = "Alert policies route security events to receivers so incidents are noticed."
    category = RuleCategory.ALERTING
    severity = Severity.MEDIUM
    applies_to = (ObjectType.ALERT_POLICY,)
    remediation = "Enable the alert policy and give it at least one receiver and one route."
    reference_url = ALERT_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)

        if get_metadata(obj).get("disable") is True:
            return self.warned("Alert policy is disabled", "disabled", "enabled")

        receivers = as_list(spec.get("receivers"))
        if not receivers:
            return self.warned("Alert policy has no receivers", 0, ">= 1 receiver")

        routes = as_list(spec.get("routes"))
        if not routes:
            return self.warned("Alert policy has no routes", 0, ">= 1 route")

        return self.passed(
            f"Alert policy routes to {len(receivers)} receiver(s)",
            {"receivers": len(receivers), "routes": len(routes)},
        )


class AlertReceiverRule(SecurityRule):
    id = "SEC-021"
    name = "Alert Receiver Configured"
    description = "Alert receivers must be enabled and point at a notification integration."
    category = RuleCategory.ALERTING
    severity = Severity.MEDIUM
    applies_to = (ObjectType.ALERT_RECEIVER,)
    remediation = "Configure an email, Slack, PagerDuty, Opsgenie or webhook integration on the receiver."
    reference_url = ALERT_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)

        if get_metadata(obj).get("disable") is True:
            return self.warned("Alert receiver is disabled", "disabled", "enabled")

        for receiver_type in RECEIVER_TYPES:
            if has_key(spec, receiver_type):
                return self.passed(f"Alert receiver uses {receiver_type}", receiver_type)

        return self.warned("Alert receiver has no recognised integration", None, list(RECEIVER_TYPES))


ACCESS_CONTROL_RULES = [
    ApiProtectionRule(),
    ClientSideDefenseRule(),
    IpReputationRule(),
    UserIdentificationRule(),
    RateLimitingRule(),
    TrustedClientsRule(),
    AlertPolicyRule(),
    AlertReceiverRule(),
]
