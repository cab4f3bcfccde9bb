"""Injection rules — SQL, OS command, code evaluation, deserialization."""

from vulnaudit.rules.models import Rule

_OWASP_A03 = "https://owasp.org/Top10/A03_2021-Injection/"

SQL_INJECTION_CONCAT = Rule(
    id="SQL_INJECTION_CONCAT",
    name="SQL Query Built by Concatenation",
    description="SQL statement assembled with string concatenation or %-formatting before execution.",
    category="injection",
    cwe="CWE-89",
    pattern=(
        r"(?i)\b(?:execute|executemany|query|raw)\s*\(\s*[\"'][^\"'\n]{0,200}"
        r"\b(?:select|insert|update|delete)\b[^\"'\n]{0,200}[\"']\s*(?:\+|%)"
    ),
    remediation="Use parameterized queries or an ORM query builder; never interpolate input into SQL text.",
    references=(_OWASP_A03, "https://cwe.mitre.org/data/definitions/89.html"),
)

SQL_INJECTION_FSTRING = Rule(
    id="SQL_INJECTION_FSTRING",
    name="SQL Query Built with Interpolation",
    description="SQL statement built from an f-string or template literal with embedded expressions.",
    category="injection",
    cwe="CWE-89",
    pattern=(
        r"(?i)\b(?:execute|executemany|query|raw)\s*\(\s*(?:f[\"']|`)[^\"'`\n]{0,200}"
        r"\b(?:select|insert|update|delete)\b[^\"'`\n]{0,200}(?:\{|\$\{)"
    ),
    remediation="Pass values as bound parameters instead of formatting them into the query string.",
    references=(_OWASP_A03,),
)

SQL_INJECTION_MULTILINE = Rule(
    id="SQL_INJECTION_MULTILINE",
    name="SQL Query Concatenated Across Lines",
    description="An execute() call whose SQL literal on the next line is concatenated with a variable.",
    category="injection",
    cwe="CWE-89",
    pattern=(
        r"(?i)\b(?:execute|query)\s*\(\s*\n\s*[\"'][^\"'\n]{0,200}"
        r"\b(?:select|insert|update|delete)\b[^\"'\n]{0,200}[\"']\s*\+"
    ),
    remediation="Use parameterized queries; keep SQL text constant.",
    references=(_OWASP_A03,),
    window=2,
)

COMMAND_INJECTION_SHELL = Rule(
    id="COMMAND_INJECTION_SHELL",
    name="Shell Command Execution",
    description="Process spawned through a shell, where metacharacters in arguments are interpreted.",
    category="injection",
    cwe="CWE-78",
    pattern=(
        r"\bos\.(?:system|popen)\s*\("
        r"|\bsubprocess\.\w+\s*\([^)\n]{0,300}\bshell\s*=\s*True"
        r"|\bchild_process\.exec(?:Sync)?\s*\("
        r"|\bRuntime\.getRuntime\(\)\.exec\s*\("
    ),
    remediation="Invoke programs with an argument list and shell=False; validate arguments against an allowlist.",
    references=(_OWASP_A03, "https://cwe.mitre.org/data/definitions/78.html"),
)

CODE_INJECTION_EVAL = Rule(
    id="CODE_INJECTION_EVAL",
    name="Dynamic Code Evaluation",
    description="eval()/exec()/new Function() executes strings as code.",
    category="injection",
    cwe="CWE-95",
    pattern=r"(?<![\w.])(?:eval|exec)\s*\(|\bnew\s+Function\s*\(",
    remediation="Remove dynamic evaluation; use a parser such as ast.literal_eval or JSON.parse for data.",
    references=(_OWASP_A03,),
)

INSECURE_DESERIALIZATION = Rule(
    id="INSECURE_DESERIALIZATION",
    name="Unsafe Deserialization",
    description="Deserializer that can instantiate arbitrary objects from untrusted bytes.",
    category="injection",
    cwe="CWE-502",
    pattern=(
        r"\b(?:pickle|cPickle|marshal|shelve)\.loads?\s*\("
        r"|\byaml\.load\s*\((?![^)\n]{0,200}SafeLoader)"
        r"|\bunserialize\s*\("
    ),
    remediation="Deserialize untrusted data only with safe formats (JSON, yaml.safe_load).",
    references=("https://owasp.org/Top10/A08_2021-Software_and_Data_Integrity_Failures/",),
)

NOSQL_INJECTION_WHERE = Rule(
    id="NOSQL_INJECTION_WHERE",
    name="NoSQL $where Clause",
    description="MongoDB $where executes JavaScript on the server.",
    category="injection",
    cwe="CWE-943",
    pattern=r"[\"']\$where[\"']\s*:",
    remediation="Replace $where with standard query operators.",
    references=(_OWASP_A03,),
)

ALL_INJECTION_RULES = [
    SQL_INJECTION_CONCAT,
    SQL_INJECTION_FSTRING,
    SQL_INJECTION_MULTILINE,
    COMMAND_INJECTION_SHELL,
    CODE_INJECTION_EVAL,
    INSECURE_DESERIALIZATION,
    NOSQL_INJECTION_WHERE,
]
