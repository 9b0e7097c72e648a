"""
Web application firewall rules (SEC-008 through SEC-010).
"""
from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import (
    as_dict,
    as_list,
    dig,
    get_spec,
    has_key,
    object_name,
    object_namespace,
    ref_name,
    ref_namespace,
)

WAF_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-security/waf-policy"


def _load_balancers_using(context, waf_namespace, waf_name):
    """Names of load balancers whose app_firewall reference resolves to this WAF."""
    names = []
    for lb_namespace, key, lb in context.iter_objects(ObjectType.HTTP_LOADBALANCER):
        ref = get_spec(lb).get("app_firewall")
        if ref_name(ref) != waf_name:
            continue
        if ref_namespace(ref, lb_namespace) not in (waf_namespace, "shared"):
            continue
        names.append(object_name(lb) or key)
    return names


class WafBlockingModeRule(SecurityRule):
    id = "SEC-008"
    name = "WAF Blocking Mode"
    description = (
        "Web Application Firewalls must run in blocking mode in production to stop "
        "SQLi, XSS and command injection rather than only report them."
    )
    category = RuleCategory.WAF
    severity = Severity.CRITICAL
    applies_to = (ObjectType.APP_FIREWALL,)
    remediation = (
        "Switch the app firewall enforcement mode from Monitoring to Blocking after "
        "validating it in staging, then tune false positives from WAF events."
    )
    reference_url = WAF_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        waf_name = object_name(obj) or "unknown"
        waf_namespace = object_namespace(obj, default="default")

        if has_key(spec, "blocking"):
            mode = "blocking"
        elif has_key(spec, "monitoring"):
            mode = "monitoring"
        else:
            mode = str(spec.get("enforcement_mode") or "unknown")
        blocking = mode == "ENFORCEMENT_MODE_BLOCKING" or "block" in mode.lower()

        used_by = _load_balancers_using(context, waf_namespace, waf_name)

        if blocking:
            return self.passed(
                "WAF is in Blocking mode", mode, "ENFORCEMENT_MODE_BLOCKING",
                used_by_load_balancers=used_by,
            )

        if used_by:
            impact = f"Affects {len(used_by)} load balancer(s): {', '.join(used_by)}"
        else:
            impact = "WAF not currently assigned to any load balancer"
        return self.failed(
            f"WAF is in {mode} mode - malicious requests are NOT being blocked",
            mode,
            "ENFORCEMENT_MODE_BLOCKING",
            used_by_load_balancers=used_by,
            impact=impact,
        )


class WafAssignedRule(SecurityRule):
    id = "SEC-008-LB"
    name = "WAF Policy Assigned to Load Balancer"
    description = (
        "Every HTTP load balancer should have an app firewall policy attached to "
        "protect against common web attacks."
    )
    category = RuleCategory.WAF
    severity = Severity.CRITICAL
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Attach an app firewall policy in the load balancer's security section."
    reference_url = WAF_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        lb_namespace = object_namespace(obj, default="default")

        if has_key(spec, "disable_waf") and spec.get("disable_waf") is not False:
            return self.failed("WAF is explicitly disabled on this load balancer", "disabled", "WAF policy assigned")

        ref = spec.get("app_firewall")
        waf_name = ref_name(ref)
        if not waf_name:
            return self.failed("No WAF policy assigned to this load balancer", None, "WAF policy assigned")

        waf_namespace = ref_namespace(ref, lb_namespace)
        if not context.has(ObjectType.APP_FIREWALL, waf_namespace, waf_name):
            return self.warned(
                f'WAF policy "{waf_name}" is referenced but could not be verified',
                waf_name,
                "Valid WAF policy assigned",
            )

        return self.passed(f'WAF policy "{waf_name}" is assigned', waf_name, "WAF policy assigned")


class WafSignatureAccuracyRule(SecurityRule):
    id = "SEC-009"
    name = "WAF High & Medium Accuracy Signatures"
    description = (
        "High and medium accuracy attack signatures should be enabled to detect "
        "common attacks while keeping false positives low."
    )
    category = RuleCategory.WAF
    severity = Severity.HIGH
    applies_to = (ObjectType.APP_FIREWALL,)
    remediation = (
        "In the firewall's detection settings enable high and medium accuracy signatures; "
        "low accuracy is optional."
    )
    reference_url = WAF_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        expected = "High and Medium accuracy signatures enabled"

        if has_key(spec, "default_detection_settings"):
            return self.passed(
                "Using default detection settings (High & Medium signatures enabled)",
                "default_detection_settings",
                expected,
            )

        if has_key(spec, "disable_detection_settings"):
            return self.failed("Detection settings are DISABLED - no attack signatures active", "disabled", expected)

        detection = as_dict(spec.get("detection_settings"))
        selection = as_dict(
            spec.get("signature_selection_by_accuracy") or detection.get("signature_selection_setting")
        )

        if has_key(selection, "only_high_accuracy_signatures"):
            return self.warned("Only High accuracy signatures enabled", ["High"], ["High", "Medium"])
        if has_key(selection, "high_medium_accuracy_signatures") or has_key(
            selection, "high_medium_low_accuracy_signatures"
        ):
            enabled = ["High", "Medium"]
            if has_key(selection, "high_medium_low_accuracy_signatures"):
                enabled.append("Low")
            return self.passed(f"Attack signatures enabled: {', '.join(enabled)} accuracy", enabled, ["High", "Medium"])

        enabled_modes = []
        if detection.get("enable_signature_based_detection") is not False:
            if selection.get("high_accuracy_signatures") is not False:
                enabled_modes.append("High")
            if selection.get("medium_accuracy_signatures") is not False:
                enabled_modes.append("Medium")
            if selection.get("low_accuracy_signatures") is True:
                enabled_modes.append("Low")

        if not enabled_modes:
            return self.failed("Signature-based detection is disabled", "disabled", expected)

        if "High" in enabled_modes and "Medium" in enabled_modes:
            if not selection:
                return self.passed(
                    "Signature settings appear to use defaults (High & Medium enabled)",
                    "implicit_default",
                    expected,
                )
            return self.passed(
                f"Attack signatures enabled: {', '.join(enabled_modes)} accuracy",
                enabled_modes,
                ["High", "Medium"],
            )

        return self.warned(
            f"Only {', '.join(enabled_modes)} accuracy signatures enabled",
            enabled_modes,
            ["High", "Medium"],
        )


class WafAttackTypesRule(SecurityRule):
    id = "SEC-010"
    name = "WAF Attack Types Active"
    description = (
        "All standard attack types (SQLi, XSS, command injection and the rest of the "
        "OWASP Top 10) should be active."
    )
    category = RuleCategory.WAF
    severity = Severity.MEDIUM
    applies_to = (ObjectType.APP_FIREWALL,)
    remediation = "Review the firewall's attack type settings and re-enable disabled categories."
    reference_url = WAF_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        expected = "All attack types active"

        if has_key(spec, "disable_detection_settings"):
            return self.failed("Detection settings are disabled - no attack types active", "disabled", expected)

        disabled = (
            as_list(spec.get("disabled_attack_types"))
            or as_list(dig(spec, "attack_type_settings", "disabled_attack_types"))
            or as_list(dig(spec, "detection_settings", "signature_selection_setting",
                           "attack_type_settings", "disabled_attack_types"))
        )
        if disabled:
            labels = [str(item.get("name", item)) if isinstance(item, dict) else str(item) for item in disabled]
            return self.warned(
                f"Some attack types are disabled: {', '.join(labels)}",
                {"disabled_types": labels},
                expected,
            )

        return self.passed("All attack signature types are active", "all_active", expected)


WAF_RULES = [
    WafBlockingModeRule(),
    WafAssignedRule(),
    WafSignatureAccuracyRule(),
    WafAttackTypesRule(),
]
