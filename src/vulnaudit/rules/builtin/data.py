"""Sensitive data exposure rules — weak crypto, plaintext transport, leaky logs."""

from vulnaudit.rules.models import Rule

_OWASP_A02 = "https://owasp.org/Top10/A02_2021-Cryptographic_Failures/"

WEAK_HASH_ALGORITHM = Rule(
    id="WEAK_HASH_ALGORITHM",
    name="Weak Hash Algorithm",
    description="MD5 and SHA-1 are broken for integrity and signature use.",
    category="sensitive_data",
    cwe="CWE-327",
    pattern=(
        r"\bhashlib\.(?:md5|sha1)\s*\("
        r"|\bcreateHash\s*\(\s*[\"'](?:md5|sha1)[\"']"
        r"|\bMessageDigest\.getInstance\s*\(\s*\"(?:MD5|SHA-?1)\""
    ),
    remediation="Use SHA-256 or stronger; use HMAC for message authentication.",
    references=(_OWASP_A02,),
)

INSECURE_RANDOM = Rule(
    id="INSECURE_RANDOM",
    name="Predictable Random for Security Value",
    description="Tokens, nonces or salts drawn from a non-cryptographic PRNG.",
    category="sensitive_data",
    cwe="CWE-330",
    pattern=(
        r"(?i)\b\w*(?:token|secret|nonce|salt|otp)\w*\s*=[^\n]{0,60}"
        r"(?:\brandom\.(?:random|randint|choice|choices|getrandbits)\b|\bMath\.random\s*\()"
    ),
    remediation="Generate security values with the secrets module or crypto.randomBytes.",
    references=(_OWASP_A02,),
)

PLAINTEXT_HTTP_URL = Rule(
    id="PLAINTEXT_HTTP_URL",
    name="Plaintext HTTP Endpoint",
    description="Hard-coded http:// URL to a non-local host sends data unencrypted.",
    category="sensitive_data",
    cwe="CWE-319",
    pattern=r"[\"']http://(?!localhost\b|127\.0\.0\.1\b|0\.0\.0\.0\b|\[::1\])[A-Za-z0-9.\-]{1,253}[^\"'\s]{0,500}[\"']",
    remediation="Use https:// for every remote endpoint.",
    references=(_OWASP_A02,),
)

SENSITIVE_DATA_LOGGED = Rule(
    id="SENSITIVE_DATA_LOGGED",
    name="Sensitive Value Written to Logs",
    description="Credentials or personal data passed to a logging or print call.",
    category="sensitive_data",
    cwe="CWE-532",
    pattern=(
        r"(?i)\b(?:log(?:ger|ging)?\.(?:debug|info|warning|warn|error|critical|exception)"
        r"|print|console\.log)\s*\([^)\n]{0,200}\b(?:password|passwd|secret|api_?key|ssn|credit_?card)\b"
    ),
    remediation="Never log secrets or personal data; log identifiers and mask values.",
    references=("https://owasp.org/Top10/A09_2021-Security_Logging_and_Monitoring_Failures/",),
)

ALL_DATA_RULES = [
    WEAK_HASH_ALGORITHM,
    INSECURE_RANDOM,
    PLAINTEXT_HTTP_URL,
    SENSITIVE_DATA_LOGGED,
]
