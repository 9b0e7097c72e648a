"""
Origin pool rules (SEC-006, SEC-007, SEC-030).
"""
import re
from typing import Any, Optional

from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import as_dict, as_list, dig, get_spec, object_namespace, ref_name, ref_namespace

ORIGIN_POOL_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-networking/origin-pools"

MIN_CONNECTION_TIMEOUT_MS = 10000

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s)?\s*$")


def _timeout_ms(value: Any) -> Optional[float]:
    """Connection timeout in milliseconds from a number (ms) or a '30s' / '500ms' string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _DURATION.match(value)
        if not match:
            return None
        amount = float(match.group(1))
        return amount * 1000 if match.group(2) == "s" else amount
    return None


class OriginConnectionTimeoutRule(SecurityRule):
    id = "SEC-006"
    name = "Origin Connection Timeout"
    description = (
        "Origin pools should set an explicit connection timeout long enough for slow "
        "backends without holding connections open indefinitely."
    )
    category = RuleCategory.ORIGIN
    severity = Severity.MEDIUM
    applies_to = (ObjectType.ORIGIN_POOL,)
    remediation = "Set the origin pool connection timeout to at least 10 seconds."
    reference_url = ORIGIN_POOL_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        raw = spec.get("connection_timeout")
        if raw is None:
            raw = dig(spec, "advanced_options", "connection_timeout")

        if raw is None:
            return self.warned(
                "No connection timeout configured - using platform default",
                None,
                f">= {MIN_CONNECTION_TIMEOUT_MS}ms",
            )

        timeout = _timeout_ms(raw)
        if timeout is not None and timeout >= MIN_CONNECTION_TIMEOUT_MS:
            return self.passed(
                f"Connection timeout is {timeout:g}ms", timeout, f">= {MIN_CONNECTION_TIMEOUT_MS}ms"
            )
        if timeout is not None and timeout > 0:
            return self.warned(
                f"Connection timeout of {timeout:g}ms may be too short for slow origins",
                timeout,
                f">= {MIN_CONNECTION_TIMEOUT_MS}ms",
            )
        return self.warned(
            f"Could not determine connection timeout from {raw!r}", raw, f">= {MIN_CONNECTION_TIMEOUT_MS}ms"
        )


class OriginHealthCheckRule(SecurityRule):
    id = "SEC-007"
    name = "Origin Health Check Configured"
    description = (
        "Origin pools need health checks so unhealthy backends are taken out of "
        "rotation automatically."
    )
    category = RuleCategory.ORIGIN
    severity = Severity.HIGH
    applies_to = (ObjectType.ORIGIN_POOL,)
    remediation = "Create a health check and attach it to the origin pool."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-networking/health-checks"

    def check(self, obj, context):
        spec = get_spec(obj)
        pool_namespace = object_namespace(obj, default="default")

        refs = as_list(spec.get("healthcheck")) or as_list(spec.get("health_check")) or as_list(
            spec.get("health_checks")
        )
        if not refs and isinstance(spec.get("healthcheck"), (dict, str)):
            refs = [spec["healthcheck"]]

        names = [ref_name(ref) for ref in refs if ref_name(ref)]
        if not names:
            return self.failed("No health check configured for this origin pool", None, "Health check configured")

        resolved = []
        unresolved = []
        for ref in refs:
            name = ref_name(ref)
            if not name:
                continue
            if context.has(ObjectType.HEALTHCHECK, ref_namespace(ref, pool_namespace), name):
                resolved.append(name)
            else:
                unresolved.append(name)

        if resolved:
            return self.passed(
                f"Health check configured: {', '.join(resolved)}", resolved, "Health check configured",
                unresolved=unresolved or None,
            )
        return self.warned(
            f"Health check referenced but not found: {', '.join(unresolved)}",
            unresolved,
            "Valid health check configured",
        )


class OriginPublicIpRule(SecurityRule):
    id = "SEC-030"
    name = "Origin Public IP Exposure"
    description = (
        "Origins reachable on public IPs can be attacked directly, bypassing the load "
        "balancer's protections."
    )
    category = RuleCategory.ORIGIN
    severity = Severity.INFO
    applies_to = (ObjectType.ORIGIN_POOL,)
    remediation = (
        "Prefer private or site-local origins, or restrict the public origin's "
        "firewall to the platform's egress ranges."
    )
    reference_url = ORIGIN_POOL_DOCS

    def check(self, obj, context):
        servers = as_list(get_spec(obj).get("origin_servers"))
        if not servers:
            return self.skipped("No origin servers configured")

        public_ips = [
            dig(server, "public_ip", "ip")
            for server in servers
            if dig(server, "public_ip", "ip")
        ]
        if public_ips:
            return self.warned(
                f"Origin pool uses public IP address(es): {', '.join(map(str, public_ips))}",
                public_ips,
                "Private or DNS-named origins",
            )
        kinds = sorted({key for server in servers for key in as_dict(server) if key != "labels"})
        return self.passed("No origin servers exposed by public IP", kinds, "Private or DNS-named origins")


ORIGIN_RULES = [
    OriginConnectionTimeoutRule(),
    OriginHealthCheckRule(),
    OriginPublicIpRule(),
]
