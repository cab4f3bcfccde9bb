"""Built-in rules — aggregate all categories."""

from vulnaudit.rules.builtin.access import ALL_ACCESS_RULES
from vulnaudit.rules.builtin.auth import ALL_AUTH_RULES
from vulnaudit.rules.builtin.data import ALL_DATA_RULES
from vulnaudit.rules.builtin.iam import DANGEROUS_ACTIONS
from vulnaudit.rules.builtin.injection import ALL_INJECTION_RULES
from vulnaudit.rules.builtin.misconfig import ALL_MISCONFIG_RULES
from vulnaudit.rules.builtin.secrets import ALL_SECRET_PATTERNS
from vulnaudit.rules.builtin.ssrf import ALL_SSRF_RULES
from vulnaudit.rules.builtin.xss import ALL_XSS_RULES
from vulnaudit.rules.models import Rule

ALL_BUILTIN_RULES: list[Rule] = [
    *ALL_INJECTION_RULES,
    *ALL_XSS_RULES,
    *ALL_AUTH_RULES,
    *ALL_DATA_RULES,
    *ALL_ACCESS_RULES,
    *ALL_MISCONFIG_RULES,
    *ALL_SSRF_RULES,
]

__all__ = ["ALL_BUILTIN_RULES", "ALL_SECRET_PATTERNS", "DANGEROUS_ACTIONS"]
