"""Cross-site scripting rules."""

from vulnaudit.rules.models import Rule

_OWASP_XSS = "https://owasp.org/www-community/attacks/xss/"

DANGEROUS_INNER_HTML = Rule(
    id="DANGEROUS_INNER_HTML",
    name="React dangerouslySetInnerHTML",
    description="Raw HTML injected into the DOM bypasses React's escaping.",
    category="xss",
    cwe="CWE-79",
    pattern=r"\bdangerouslySetInnerHTML\s*=",
    remediation="Render text nodes instead, or sanitize with DOMPurify before injecting HTML.",
    references=(_OWASP_XSS,),
    file_patterns=("*.js", "*.jsx", "*.ts", "*.tsx"),
)

INNER_HTML_ASSIGNMENT = Rule(
    id="INNER_HTML_ASSIGNMENT",
    name="innerHTML Assignment",
    description="Assigning to innerHTML/outerHTML parses the value as markup.",
    category="xss",
    cwe="CWE-79",
    pattern=r"\.(?:innerHTML|outerHTML)\s*\+?=(?!=)",
    remediation="Use textContent, or sanitize the value before assignment.",
    references=(_OWASP_XSS,),
)

DOCUMENT_WRITE = Rule(
    id="DOCUMENT_WRITE",
    name="document.write Call",
    description="document.write() writes unescaped markup into the page.",
    category="xss",
    cwe="CWE-79",
    pattern=r"\bdocument\.write(?:ln)?\s*\(",
    remediation="Build DOM nodes explicitly instead of writing markup strings.",
    references=(_OWASP_XSS,),
)

TEMPLATE_AUTOESCAPE_BYPASS = Rule(
    id="TEMPLATE_AUTOESCAPE_BYPASS",
    name="Template Auto-Escaping Bypassed",
    description="Template output marked safe or rendered with triple braces is not escaped.",
    category="xss",
    cwe="CWE-79",
    pattern=r"\|\s*safe\b|\bmark_safe\s*\(|\{\{\{[^}\n]{1,200}\}\}\}|\bautoescape\s+false\b",
    remediation="Keep auto-escaping enabled; sanitize any value that must be rendered as HTML.",
    references=(_OWASP_XSS,),
)

ALL_XSS_RULES = [
    DANGEROUS_INNER_HTML,
    INNER_HTML_ASSIGNMENT,
    DOCUMENT_WRITE,
    TEMPLATE_AUTOESCAPE_BYPASS,
]
