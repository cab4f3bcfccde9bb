"""Broken access control rules."""

from vulnaudit.rules.models import Rule

_OWASP_A01 = "https://owasp.org/Top10/A01_2021-Broken_Access_Control/"

# request-derived value: Flask/Django/Express request objects
_USER_INPUT = r"\b(?:request|req)\.(?:args|params|query|GET|POST|form|body|values)\b"

PATH_TRAVERSAL = Rule(
    id="PATH_TRAVERSAL",
    name="File Path from Request Input",
    description="A file is opened or sent using a path taken directly from the request.",
    category="broken_access_control",
    cwe="CWE-22",
    pattern=(
        r"\b(?:open|send_file|sendFile|readFile(?:Sync)?|os\.path\.join|path\.join)\s*\("
        r"[^)\n]{0,200}" + _USER_INPUT
    ),
    remediation="Resolve the path and verify it stays under an allowed base directory.",
    references=(_OWASP_A01,),
)

CSRF_PROTECTION_DISABLED = Rule(
    id="CSRF_PROTECTION_DISABLED",
    name="CSRF Protection Disabled",
    description="View or application opts out of CSRF protection.",
    category="broken_access_control",
    cwe="CWE-352",
    pattern=r"@csrf_exempt\b|\bWTF_CSRF_ENABLED\s*=\s*False|\bcsrf\(\)\.disable\(\)",
    remediation="Keep CSRF protection enabled for state-changing endpoints.",
    references=(_OWASP_A01,),
)

INSECURE_DIRECT_OBJECT_REFERENCE = Rule(
    id="INSECURE_DIRECT_OBJECT_REFERENCE",
    name="Object Lookup by Request-Supplied Id",
    description="A record is fetched by an id from the request with no ownership check on the same line.",
    category="broken_access_control",
    cwe="CWE-639",
    pattern=(
        r"\.(?:get|get_object_or_404|filter|find_by_id|findById|findOne)\s*\("
        r"[^)\n]{0,120}" + _USER_INPUT
    ),
    remediation="Scope lookups to the authenticated principal (e.g. filter by owner) before returning data.",
    references=(_OWASP_A01,),
)

PERMIT_ALL = Rule(
    id="PERMIT_ALL",
    name="Endpoint Open to Everyone",
    description="Authorization explicitly disabled for a route or view.",
    category="broken_access_control",
    cwe="CWE-284",
    pattern=r"\bpermitAll\s*\(\)|\bpermission_classes\s*=\s*[\[(]\s*AllowAny\b|@PermitAll\b",
    remediation="Require authentication and an explicit role or permission check.",
    references=(_OWASP_A01,),
)

ALL_ACCESS_RULES = [
    PATH_TRAVERSAL,
    CSRF_PROTECTION_DISABLED,
    INSECURE_DIRECT_OBJECT_REFERENCE,
    PERMIT_ALL,
]
