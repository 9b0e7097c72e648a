"""
Bot defense, malicious user and DDoS rules for HTTP load balancers.
"""
from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import dig, get_spec, has_key


class BotDefenseRule(SecurityRule):
    id = "SEC-011"
    name = "Bot Defense Enabled"
    description = "Bot defense detects and mitigates automated traffic such as credential stuffing and scraping."
    category = RuleCategory.BOT_DEFENSE
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable Bot Defense on the load balancer and protect login and checkout endpoints."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/bot-defense"

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_bot_defense"):
            return self.failed("Bot defense is explicitly disabled", "disabled", "enabled")

        if dig(spec, "bot_defense", "policy") or dig(spec, "bot_defense", "regional_endpoint"):
            return self.passed(
                "Bot defense is enabled",
                {"regional_endpoint": dig(spec, "bot_defense", "regional_endpoint")},
                "enabled",
            )

        return self.warned("Bot defense is not configured", None, "enabled")


class DdosProtectionRule(SecurityRule):
    id = "SEC-013"
    name = "L7 DDoS Protection"
    description = "Layer 7 DDoS detection and mitigation should be active on internet-facing load balancers."
    category = RuleCategory.DDOS
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable DDoS detection on the load balancer and review its mitigation rules."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/application-ddos"

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_ddos_detection"):
            return self.warned("DDoS detection is disabled", "disabled", "enabled")

        for key in ("l7_ddos_protection", "ddos_mitigation_rules", "enable_ddos_detection"):
            if spec.get(key) is not None and spec.get(key) is not False:
                return self.passed(f"L7 DDoS protection configured ({key})", key, "enabled")

        return self.warned("L7 DDoS protection is not explicitly configured", None, "enabled")


class MaliciousUserDetectionRule(SecurityRule):
    id = "SEC-017"
    name = "Malicious User Detection"
    description = (
        "Malicious user detection scores client behaviour over time and can challenge "
        "or block repeat offenders."
    )
    category = RuleCategory.BOT_DEFENSE
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Enable malicious user detection and attach a mitigation policy."
    reference_url = "https://docs.cloud.f5.com/docs/how-to/app-security/malicious-users"

    def check(self, obj, context):
        spec = get_spec(obj)

        if has_key(spec, "disable_malicious_user_detection"):
            return self.failed("Malicious user detection is disabled", "disabled", "enabled")

        if (
            has_key(spec, "enable_malicious_user_detection")
            or spec.get("malicious_user_detection")
            or spec.get("malicious_user_mitigation")
        ):
            return self.passed("Malicious user detection is enabled", "enabled", "enabled")

        return self.warned("Malicious user detection is not configured", None, "enabled")


BOT_DDOS_RULES = [
    BotDefenseRule(),
    DdosProtectionRule(),
    MaliciousUserDetectionRule(),
]
