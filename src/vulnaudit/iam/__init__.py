"""IAM policy models and least-privilege analyzer."""

from vulnaudit.iam.analyzer import IAMAnalyzer, action_matches
from vulnaudit.iam.models import IAMPermission, IAMPolicy, PolicyParseError, parse_policy

__all__ = [
    "IAMAnalyzer",
    "IAMPermission",
    "IAMPolicy",
    "PolicyParseError",
    "action_matches",
    "parse_policy",
]
