"""
Service policy, logging and error page rules.
"""
from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import as_dict, as_list, dig, get_metadata, get_spec, has_key

SERVICE_POLICY_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-security/service-policy"
LOG_RECEIVER_DOCS = "https://docs.cloud.f5.com/docs/how-to/observability/global-log-receiver"

LOG_DESTINATIONS = (
    "splunk_receiver",
    "datadog_receiver",
    "s3_receiver",
    "azure_receiver",
    "gcp_bucket_receiver",
    "kafka_receiver",
    "http_receiver",
    "sumo_logic_receiver",
    "qradar_receiver",
    "newrelic_receiver",
)


def _policy_rules(spec):
    return as_list(spec.get("rules")) or as_list(dig(spec, "rule_list", "rules"))


def _rule_body(rule):
    """Service policy rules carry their match either in spec or at the top level."""
    return as_dict(as_dict(rule).get("spec")) or as_dict(rule)


class GeoBlockingRule(SecurityRule):
    id = "SEC-022"
    name = "Geo-Location Filtering"
    description = "Service policies can restrict traffic by source country to shrink the attack surface."
    category = RuleCategory.ACCESS_CONTROL
    severity = Severity.MEDIUM
    applies_to = (ObjectType.SERVICE_POLICY,)
    remediation = "Add service policy rules that deny countries the application does not serve."
    reference_url = SERVICE_POLICY_DOCS

    def check(self, obj, context):
        for rule in _policy_rules(get_spec(obj)):
            body = _rule_body(rule)
            match = as_dict(body.get("match"))
            if any(
                has_key(source, key)
                for source in (body, match)
                for key in ("geo_ip", "source_geo_location", "country_list")
            ):
                return self.passed("Service policy filters by geo-location", "geo_filtering")
        return self.skipped("Service policy has no geo-location rules")


class HttpMethodRestrictionRule(SecurityRule):
    id = "SEC-023"
    name = "HTTP Method Restriction"
    description = "Restricting allowed HTTP methods blocks verbs the application never expects."
    category = RuleCategory.ACCESS_CONTROL
    severity = Severity.MEDIUM
    applies_to = (ObjectType.SERVICE_POLICY,)
    remediation = "Add a service policy rule allowing only the HTTP methods the application uses."
    reference_url = SERVICE_POLICY_DOCS

    def check(self, obj, context):
        for rule in _policy_rules(get_spec(obj)):
            body = _rule_body(rule)
            match = as_dict(body.get("match"))
            if any(has_key(source, key) for source in (body, match) for key in ("http_method", "methods")):
                return self.passed("Service policy restricts HTTP methods", "method_restriction")
        return self.skipped("Service policy has no HTTP method rules")


class GlobalLogReceiverRule(SecurityRule):
    id = "SEC-024"
    name = "Log Receiver Destination"
    description = "Global log receivers must be enabled and deliver logs to an external destination."
    category = RuleCategory.LOGGING
    severity = Severity.HIGH
    applies_to = (ObjectType.GLOBAL_LOG_RECEIVER,)
    remediation = "Configure the log receiver with a SIEM or storage destination and enable it."
    reference_url = LOG_RECEIVER_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)

        if get_metadata(obj).get("disable") is True:
            return self.warned("Global log receiver is disabled", "disabled", "enabled")

        for destination in LOG_DESTINATIONS:
            if has_key(spec, destination):
                label = destination[: -len("_receiver")]
                return self.passed(f"Logs are streamed to {label}", label)

        if spec.get("receiver") or spec.get("receiver_cfg"):
            return self.passed("Log receiver destination is configured", "configured")

        return self.warned("Global log receiver has no destination configured", None, list(LOG_DESTINATIONS))


class TenantSiemIntegrationRule(SecurityRule):
    id = "SEC-024-TENANT"
    name = "SIEM Integration"
    description = "At least one global log receiver should ship tenant security events to a SIEM."
    category = RuleCategory.LOGGING
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Create a global log receiver in the shared namespace pointing at your SIEM."
    reference_url = LOG_RECEIVER_DOCS

    def check(self, obj, context):
        count = context.count(ObjectType.GLOBAL_LOG_RECEIVER)
        if count > 0:
            return self.passed(f"{count} global log receiver(s) configured", count, ">= 1")
        return self.warned("No global log receiver configured - security events stay in the console", 0, ">= 1")


class CustomErrorPagesRule(SecurityRule):
    id = "SEC-026"
    name = "Custom Error Pages"
    description = "Custom error pages avoid leaking platform or origin details in error responses."
    category = RuleCategory.CLIENT_SECURITY
    severity = Severity.LOW
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Configure custom error responses under the load balancer's advanced options."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-networking/http-load-balancer"

    def check(self, obj, context):
        spec = get_spec(obj)
        if spec.get("custom_errors") or dig(spec, "more_option", "custom_errors"):
            return self.passed("Custom error pages are configured", "custom")
        if has_key(spec, "disable_default_error_pages"):
            return self.warned("Default error pages are disabled without custom replacements", "disabled")
        return self.skipped("Using default error pages")


class ServicePolicyAssignedRule(SecurityRule):
    id = "SEC-028-LB"
    name = "Service Policy Assigned"
    description = "Service policies add allow/deny logic in front of the application."
    category = RuleCategory.ACCESS_CONTROL
    severity = Severity.LOW
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Attach service policies to the load balancer or inherit the namespace policy set."
    reference_url = SERVICE_POLICY_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "no_service_policies"):
            return self.skipped("No service policies applied to this load balancer")

        policies = as_list(dig(spec, "active_service_policies", "policies"))
        if policies:
            names = [str(as_dict(policy).get("name", policy)) for policy in policies]
            return self.passed(f"Service policies assigned: {', '.join(names)}", names)

        if has_key(spec, "service_policies_from_namespace"):
            return self.passed("Service policies inherited from namespace", "namespace")

        return self.skipped("No service policy configuration found")


LOGGING_RULES = [
    GeoBlockingRule(),
    HttpMethodRestrictionRule(),
    GlobalLogReceiverRule(),
    TenantSiemIntegrationRule(),
    CustomErrorPagesRule(),
    ServicePolicyAssignedRule(),
]
