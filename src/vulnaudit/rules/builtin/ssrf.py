"""Server-side request forgery rules."""

from vulnaudit.rules.models import Rule

_OWASP_A10 = "https://owasp.org/Top10/A10_2021-Server-Side_Request_Forgery_%28SSRF%29/"

SSRF_HTTP_CLIENT = Rule(
    id="SSRF_HTTP_CLIENT",
    name="Outbound Request to Request-Supplied URL",
    description="An HTTP client is called with a URL taken from the incoming request.",
    category="ssrf",
    cwe="CWE-918",
    pattern=(
        r"\b(?:requests|httpx|axios|http|https|urllib\.request)\.(?:get|post|put|patch|delete|head|request|urlopen)\s*\("
        r"\s*(?:url\s*=\s*)?(?:request|req)\.(?:args|params|query|GET|POST|form|body|values)\b"
    ),
    remediation="Validate the destination against an allowlist of hosts and block private address ranges.",
    references=(_OWASP_A10,),
)

SSRF_URLOPEN = Rule(
    id="SSRF_URLOPEN",
    name="urlopen/fetch on Request Input",
    description="urlopen() or fetch() called with a value derived from the request.",
    category="ssrf",
    cwe="CWE-918",
    pattern=r"\b(?:urlopen|fetch)\s*\(\s*(?:request|req)\.(?:args|params|query|GET|POST|form|body|values)\b",
    remediation="Resolve and validate the target host before issuing the request.",
    references=(_OWASP_A10,),
)

CLOUD_METADATA_ENDPOINT = Rule(
    id="CLOUD_METADATA_ENDPOINT",
    name="Cloud Metadata Endpoint Reference",
    description="Code reaches the instance metadata service, a common SSRF pivot for credential theft.",
    category="ssrf",
    cwe="CWE-918",
    pattern=r"\b169\.254\.169\.254\b|\bmetadata\.google\.internal\b",
    remediation="Block metadata addresses in outbound request filters and require IMDSv2.",
    references=(_OWASP_A10,),
)

ALL_SSRF_RULES = [SSRF_HTTP_CLIENT, SSRF_URLOPEN, CLOUD_METADATA_ENDPOINT]
