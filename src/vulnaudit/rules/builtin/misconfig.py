"""Security misconfiguration rules."""

from vulnaudit.rules.models import Rule

_OWASP_A05 = "https://owasp.org/Top10/A05_2021-Security_Misconfiguration/"

DEBUG_ENABLED = Rule(
    id="DEBUG_ENABLED",
    name="Debug Mode Enabled",
    description="Debug mode exposes stack traces and interactive consoles.",
    category="security_misconfiguration",
    cwe="CWE-489",
    pattern=r"^\s*DEBUG\s*=\s*True\b|\.run\s*\([^)\n]{0,200}\bdebug\s*=\s*True",
    remediation="Drive debug mode from environment configuration and keep it off in production.",
    references=(_OWASP_A05,),
)

CORS_WILDCARD = Rule(
    id="CORS_WILDCARD",
    name="CORS Allows Any Origin",
    description="Cross-origin requests accepted from every origin.",
    category="security_misconfiguration",
    cwe="CWE-942",
    pattern=(
        r"(?i)Access-Control-Allow-Origin[\"']?\s*[:,]\s*[\"']\*[\"']"
        r"|\bCORS_ORIGIN_ALLOW_ALL\s*=\s*True|\bCORS_ALLOW_ALL_ORIGINS\s*=\s*True"
        r"|\borigins?\s*[:=]\s*[\"']\*[\"']"
    ),
    remediation="Allow only the specific origins that need access.",
    references=(_OWASP_A05,),
)

TLS_VERIFICATION_DISABLED = Rule(
    id="TLS_VERIFICATION_DISABLED",
    name="TLS Certificate Verification Disabled",
    description="Outbound TLS connections accept any certificate.",
    category="security_misconfiguration",
    cwe="CWE-295",
    pattern=(
        r"\bverify\s*=\s*False\b|\brejectUnauthorized\s*:\s*false"
        r"|\bInsecureSkipVerify\s*:\s*true|\bssl\._create_unverified_context\s*\("
        r"|\bCERT_NONE\b"
    ),
    remediation="Keep certificate verification on; pin a CA bundle if a private CA is used.",
    references=(_OWASP_A05,),
)

BIND_ALL_INTERFACES = Rule(
    id="BIND_ALL_INTERFACES",
    name="Service Bound to All Interfaces",
    description="Listening on 0.0.0.0 exposes the service on every network interface.",
    category="security_misconfiguration",
    cwe="CWE-1327",
    pattern=r"\bhost\s*[=:]\s*[\"']0\.0\.0\.0[\"']",
    remediation="Bind to localhost or a specific interface unless external exposure is intended.",
    references=(_OWASP_A05,),
)

ALL_MISCONFIG_RULES = [
    DEBUG_ENABLED,
    CORS_WILDCARD,
    TLS_VERIFICATION_DISABLED,
    BIND_ALL_INTERFACES,
]
