"""Secret patterns — cloud keys, tokens, private keys, passwords.

Each pattern carries its own entropy floor; the value checked is the
``secret`` group when present.
"""

from vulnaudit.rules.models import SecretPattern

AWS_ACCESS_KEY = SecretPattern(
    id="AWS_ACCESS_KEY",
    name="AWS Access Key ID",
    description="AWS access key id (AKIA/ASIA prefix).",
    severity="critical",
    entropy_threshold=3.0,
    pattern=r"(?:^|[^A-Za-z0-9])(?P<secret>(?:AKIA|ASIA)[0-9A-Z]{16})(?:$|[^A-Za-z0-9])",
)

AWS_SECRET_KEY = SecretPattern(
    id="AWS_SECRET_KEY",
    name="AWS Secret Access Key",
    description="AWS secret access key assigned in code.",
    severity="critical",
    entropy_threshold=4.0,
    pattern=r"(?i)(?:aws_secret_access_key|aws_secret_key)\s*[:=]\s*['\"]?(?P<secret>[A-Za-z0-9/+=]{40})['\"]?",
)

GITHUB_TOKEN = SecretPattern(
    id="GITHUB_TOKEN",
    name="GitHub Token",
    description="GitHub personal access / OAuth / app token (ghp_, gho_, ghu_, ghs_, ghr_).",
    severity="critical",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>gh[pousr]_[A-Za-z0-9_]{36,255})",
)

GITLAB_TOKEN = SecretPattern(
    id="GITLAB_TOKEN",
    name="GitLab Personal Access Token",
    description="GitLab PAT (glpat- prefix).",
    severity="critical",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>glpat-[A-Za-z0-9\-_]{20,})",
)

STRIPE_SECRET_KEY = SecretPattern(
    id="STRIPE_SECRET_KEY",
    name="Stripe Secret Key",
    description="Stripe live secret key.",
    severity="critical",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>sk_live_[A-Za-z0-9]{24,})",
)

PRIVATE_KEY = SecretPattern(
    id="PRIVATE_KEY",
    name="Private Key",
    description="PEM-encoded private key header (RSA, EC, DSA, OpenSSH, PGP).",
    severity="critical",
    entropy_threshold=2.5,
    pattern=r"(?P<secret>-----BEGIN (?:RSA |EC |DSA |OPENSSH |PGP )?PRIVATE KEY(?: BLOCK)?-----)",
)

SLACK_TOKEN = SecretPattern(
    id="SLACK_TOKEN",
    name="Slack Token",
    description="Slack bot/user/workspace token.",
    severity="high",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>xox[bporsca]-[0-9]{10,13}-[0-9]{10,13}[a-zA-Z0-9-]*)",
)

GOOGLE_API_KEY = SecretPattern(
    id="GOOGLE_API_KEY",
    name="Google API Key",
    description="Google Cloud / Maps API key (AIza prefix).",
    severity="high",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>AIza[0-9A-Za-z\-_]{35})",
)

JSON_WEB_TOKEN = SecretPattern(
    id="JSON_WEB_TOKEN",
    name="JSON Web Token",
    description="Three-part base64url JWT.",
    severity="high",
    entropy_threshold=4.0,
    pattern=r"(?P<secret>eyJ[A-Za-z0-9_-]{10,}\.eyJ[A-Za-z0-9_-]{10,}\.[A-Za-z0-9_-]+)",
)

GENERIC_API_KEY = SecretPattern(
    id="GENERIC_API_KEY",
    name="Generic API Key Assignment",
    description="API key, secret or token assigned to a string literal.",
    severity="high",
    entropy_threshold=3.5,
    pattern=(
        r"(?i)(?:api[_-]?key|api[_-]?secret|api[_-]?token|access[_-]?token|auth[_-]?token|client[_-]?secret)"
        r"\s*[:=]\s*['\"](?P<secret>[A-Za-z0-9_\-./+=]{16,})['\"]"
    ),
)

HARDCODED_PASSWORD = SecretPattern(
    id="HARDCODED_PASSWORD",
    name="Hardcoded Password",
    description="Password assigned to a string literal.",
    severity="high",
    entropy_threshold=3.0,
    pattern=r"(?i)\b(?:password|passwd|pwd)\s*[:=]\s*['\"](?P<secret>[^'\"\s]{6,})['\"]",
)

CONNECTION_STRING = SecretPattern(
    id="CONNECTION_STRING",
    name="Credentials in Connection String",
    description="Database or broker URL with an embedded password.",
    severity="high",
    entropy_threshold=3.0,
    pattern=(
        r"(?i)(?:mongodb(?:\+srv)?|postgres(?:ql)?|mysql|redis|amqp|mssql)"
        r"://[^:/\s]+:(?P<secret>[^@\s]{6,})@[^\s'\"]+"
    ),
)

SLACK_WEBHOOK = SecretPattern(
    id="SLACK_WEBHOOK",
    name="Slack Webhook URL",
    description="Slack incoming webhook URL.",
    severity="medium",
    entropy_threshold=3.5,
    pattern=r"(?P<secret>https://hooks\.slack\.com/services/T[A-Za-z0-9]+/B[A-Za-z0-9]+/[A-Za-z0-9]+)",
)

ALL_SECRET_PATTERNS = [
    AWS_ACCESS_KEY,
    AWS_SECRET_KEY,
    GITHUB_TOKEN,
    GITLAB_TOKEN,
    STRIPE_SECRET_KEY,
    PRIVATE_KEY,
    SLACK_TOKEN,
    GOOGLE_API_KEY,
    JSON_WEB_TOKEN,
    GENERIC_API_KEY,
    HARDCODED_PASSWORD,
    CONNECTION_STRING,
    SLACK_WEBHOOK,
]
