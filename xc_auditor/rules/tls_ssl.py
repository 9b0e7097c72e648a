"""
TLS/SSL security rules (SEC-001 through SEC-005).
"""
import re

from xc_auditor.models.enums import ObjectType, RuleCategory, Severity
from xc_auditor.rules.base import SecurityRule
from xc_auditor.utils.config_object import as_dict, as_list, dig, get_spec, has_key

LB_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-networking/http-load-balancer"
ORIGIN_POOL_DOCS = "https://docs.cloud.f5.com/docs/how-to/app-networking/origin-pools"

SECURE_TLS_VERSIONS = ("TLS_1_2", "TLS_1_3", "TLS12", "TLS13")


class HttpRedirectRule(SecurityRule):
    id = "SEC-001"
    name = "HTTP to HTTPS Redirect"
    description = (
        "HTTP traffic should be automatically redirected to HTTPS to enforce "
        "secure communication between users and your application."
    )
    category = RuleCategory.TLS_SSL
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = (
        "Edit the HTTP load balancer and enable 'HTTP Redirect to HTTPS' "
        "in its HTTPS settings."
    )
    reference_url = LB_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        redirect = (
            spec.get("http_redirect") is True
            or dig(spec, "https", "http_redirect") is True
            or dig(spec, "https_auto_cert", "http_redirect") is True
            or dig(spec, "http", "http_redirect") is True
            or spec.get("redirect_to_https") is True
        )
        if redirect:
            return self.passed("HTTP to HTTPS redirect is enabled", True, True)
        return self.failed(
            "HTTP to HTTPS redirect is NOT enabled - traffic may be unencrypted", False, True
        )


class HstsHeaderRule(SecurityRule):
    id = "SEC-002"
    name = "HSTS Header Enabled"
    description = (
        "HSTS tells browsers to only access the application over HTTPS, "
        "preventing protocol downgrade attacks."
    )
    category = RuleCategory.TLS_SSL
    severity = Severity.HIGH
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = (
        "Enable 'Add HSTS Header' on the load balancer once every resource is served over HTTPS."
    )
    reference_url = LB_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        hsts = (
            spec.get("add_hsts_header") is True
            or dig(spec, "https", "add_hsts") is True
            or dig(spec, "https", "add_hsts_header") is True
            or dig(spec, "https_auto_cert", "add_hsts") is True
            or dig(spec, "https_auto_cert", "add_hsts_header") is True
        )
        if hsts:
            return self.passed("HSTS header is enabled", True, True)
        return self.failed(
            "HSTS header is NOT enabled - browsers may accept insecure connections", False, True
        )


class CertificateBlindfoldRule(SecurityRule):
    id = "SEC-003"
    name = "SSL Certificate Blindfolded"
    description = (
        "Private keys of custom certificates should be blindfolded before upload so "
        "they are never visible in plaintext."
    )
    category = RuleCategory.TLS_SSL
    severity = Severity.MEDIUM
    applies_to = (ObjectType.HTTP_LOADBALANCER,)
    remediation = "Re-upload the certificate using the Blindfold option for its private key."
    reference_url = "https://docs.cloud.f5.com/docs-v2/platform/concepts/security#secrets-management-and-blindfold"

    def check(self, obj, context):
        spec = get_spec(obj)

        if spec.get("https_auto_cert") or spec.get("automatic_certificate"):
            return self.passed(
                "Using automatic certificate - no custom private key to blindfold",
                "auto_cert",
                "blindfolded or auto_cert",
            )

        https_config = as_dict(spec.get("https") or spec.get("tls_parameters"))
        certificates = as_list(https_config.get("tls_certificates")) or as_list(
            dig(https_config, "tls_cert_params", "certificates")
        )
        if not certificates:
            return self.skipped("No custom TLS certificate configured")

        for certificate in certificates:
            private_key = as_dict(as_dict(certificate).get("private_key"))
            if not private_key:
                continue
            blindfolded = (
                has_key(private_key, "blindfold_secret_info")
                or has_key(private_key, "blindfolded_secret")
                or private_key.get("secret_encoding_type") == "EncodingBlindfolded"
            )
            if not blindfolded:
                return self.failed(
                    "SSL private key is NOT blindfolded - key may be accessible in plaintext",
                    "not_blindfolded",
                    "blindfolded",
                )

        return self.passed("SSL certificate private key is blindfolded", "blindfolded", "blindfolded")


class OriginTlsRule(SecurityRule):
    id = "SEC-004"
    name = "Origin Pool TLS Enabled"
    description = (
        "TLS should be enabled between the load balancer and origin servers for "
        "end-to-end encryption."
    )
    category = RuleCategory.TLS_SSL
    severity = Severity.HIGH
    applies_to = (ObjectType.ORIGIN_POOL,)
    remediation = "Enable TLS on the origin pool and require TLS 1.2 or later."
    reference_url = ORIGIN_POOL_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        use_tls = bool(spec.get("use_tls"))
        has_tls_config = has_key(spec, "tls_config")
        port = spec.get("port")
        if not isinstance(port, int):
            servers = as_list(spec.get("origin_servers"))
            port = as_dict(servers[0]).get("port") if servers else None
        if not isinstance(port, int):
            port = 80

        if use_tls or has_tls_config or port == 443:
            return self.passed(
                "TLS is enabled for origin connectivity",
                {"use_tls": use_tls, "has_tls_config": has_tls_config, "port": port},
                "TLS enabled",
            )
        return self.failed(
            "TLS is NOT enabled - traffic to origin is unencrypted",
            {"use_tls": False, "port": port},
            "TLS enabled (use_tls or port 443)",
        )


class OriginTlsVersionRule(SecurityRule):
    id = "SEC-005"
    name = "TLS 1.2+ for Origin"
    description = (
        "TLS 1.2 or higher should be enforced for backend connections; TLS 1.0 and "
        "1.1 have known weaknesses."
    )
    category = RuleCategory.TLS_SSL
    severity = Severity.HIGH
    applies_to = (ObjectType.ORIGIN_POOL,)
    remediation = "Set the origin pool's minimum TLS version to TLS 1.2."
    reference_url = ORIGIN_POOL_DOCS

    def check(self, obj, context):
        spec = get_spec(obj)
        if not spec.get("use_tls") and not spec.get("tls_config"):
            return self.skipped("TLS not enabled on this origin pool - skipping version check")

        tls_config = as_dict(spec.get("tls_config"))
        min_version = (
            tls_config.get("min_version")
            or tls_config.get("minimum_protocol_version")
            or dig(spec, "use_tls", "tls_config", "custom_security", "min_version")
            or "TLS_AUTO"
        )
        min_version = str(min_version)

        normalized = re.sub(r"[.\-]", "_", min_version.upper()).replace("V", "_", 1)
        if any(version in normalized for version in SECURE_TLS_VERSIONS):
            return self.passed(f"TLS minimum version is {min_version}", min_version, "TLS 1.2 or higher")

        if min_version in ("TLS_AUTO", "AUTO"):
            return self.warned(
                "TLS version is set to AUTO - consider explicitly setting TLS 1.2+",
                min_version,
                "TLS 1.2 or higher (explicit)",
            )

        return self.failed(f"TLS minimum version {min_version} is insecure", min_version, "TLS 1.2 or higher")


TLS_SSL_RULES = [
    HttpRedirectRule(),
    HstsHeaderRule(),
    CertificateBlindfoldRule(),
    OriginTlsRule(),
    OriginTlsVersionRule(),
]
