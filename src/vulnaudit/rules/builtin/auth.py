"""Broken authentication rules."""

from vulnaudit.rules.models import Rule

_OWASP_A07 = "https://owasp.org/Top10/A07_2021-Identification_and_Authentication_Failures/"

JWT_VERIFICATION_DISABLED = Rule(
    id="JWT_VERIFICATION_DISABLED",
    name="JWT Signature Verification Disabled",
    description="Tokens are decoded without verifying their signature, or the 'none' algorithm is accepted.",
    category="broken_auth",
    cwe="CWE-347",
    pattern=(
        r"(?i)[\"']verify_signature[\"']\s*:\s*False"
        r"|\bverify\s*=\s*False[^\n]{0,80}\bjwt\b|\bjwt\b[^\n]{0,80}\bverify\s*=\s*False"
        r"|algorithms\s*[=:]\s*\[\s*[\"']none[\"']"
    ),
    remediation="Always verify token signatures with an explicit allowlist of strong algorithms.",
    references=(_OWASP_A07,),
)

WEAK_PASSWORD_HASH = Rule(
    id="WEAK_PASSWORD_HASH",
    name="Password Hashed with Fast Digest",
    description="Passwords hashed with MD5/SHA-1 can be brute-forced offline.",
    category="broken_auth",
    cwe="CWE-916",
    pattern=r"(?i)\bpass(?:word|wd)?\w*[^\n]{0,60}\b(?:md5|sha1)\b",
    remediation="Hash passwords with bcrypt, scrypt or Argon2.",
    references=(_OWASP_A07,),
)

INSECURE_SESSION_COOKIE = Rule(
    id="INSECURE_SESSION_COOKIE",
    name="Session Cookie Without Secure/HttpOnly",
    description="Session cookies readable by scripts or sent over plaintext HTTP.",
    category="broken_auth",
    cwe="CWE-1004",
    pattern=(
        r"\bSESSION_COOKIE_(?:SECURE|HTTPONLY)\s*=\s*False"
        r"|\bhttpOnly\s*:\s*false|\bsecure\s*:\s*false"
    ),
    remediation="Set Secure, HttpOnly and SameSite on session cookies.",
    references=(_OWASP_A07,),
)

AUTH_CHECK_BYPASSED = Rule(
    id="AUTH_CHECK_BYPASSED",
    name="Authentication Check Short-Circuited",
    description="Authentication helper that unconditionally returns success.",
    category="broken_auth",
    cwe="CWE-287",
    pattern=r"(?i)\bdef\s+(?:is_authenticated|check_auth\w*|authenticate\w*)\s*\([^)\n]{0,120}\)\s*(?:->\s*\w+\s*)?:\s*return\s+True\b",
    remediation="Implement the credential check; never ship stubbed authentication.",
    references=(_OWASP_A07,),
)

ALL_AUTH_RULES = [
    JWT_VERIFICATION_DISABLED,
    WEAK_PASSWORD_HASH,
    INSECURE_SESSION_COOKIE,
    AUTH_CHECK_BYPASSED,
]
