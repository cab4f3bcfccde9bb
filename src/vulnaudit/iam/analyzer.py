"""Least-privilege checks over IAM policies.

Checks are provider-agnostic: they only look at the action / resource /
effect / condition shape and compare action strings literally or by
wildcard (``iam:*`` matches ``iam:CreateUser``), case-insensitively.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from fnmatch import fnmatchcase
from typing import Callable, Iterable, List, Optional, Tuple

from vulnaudit.findings.models import Finding, Location, make_finding_id, utcnow
from vulnaudit.iam.models import IAMPermission, IAMPolicy
from vulnaudit.scoring.cvss import CVSSMetrics, CVSSScore, calculate_score

logger = logging.getLogger(__name__)

_AWS_LEAST_PRIVILEGE = (
    "https://docs.aws.amazon.com/IAM/latest/UserGuide/best-practices.html"
    "#grant-least-privilege"
)

# Full "*" action: admin over every service, impact escapes the granting account.
WILDCARD_ACTION_ANY = CVSSMetrics(
    attack_vector="network",
    attack_complexity="low",
    privileges_required="low",
    user_interaction="none",
    scope="changed",
    confidentiality_impact="high",
    integrity_impact="high",
    availability_impact="high",
)
# Service-level wildcard such as "s3:*".
WILDCARD_ACTION_SERVICE = CVSSMetrics(
    attack_vector="network",
    attack_complexity="low",
    privileges_required="low",
    user_interaction="none",
    scope="unchanged",
    confidentiality_impact="high",
    integrity_impact="high",
    availability_impact="high",
)
WILDCARD_RESOURCE = CVSSMetrics(
    attack_vector="network",
    attack_complexity="low",
    privileges_required="low",
    user_interaction="none",
    scope="unchanged",
    confidentiality_impact="high",
    integrity_impact="low",
    availability_impact="low",
)
# No network exposure assumed: an insider with high privileges must use it.
STALE_POLICY = CVSSMetrics(
    attack_vector="local",
    attack_complexity="high",
    privileges_required="high",
    user_interaction="none",
    scope="unchanged",
    confidentiality_impact="high",
    integrity_impact="low",
    availability_impact="none",
)
DANGEROUS_UNCONDITIONED = CVSSMetrics(
    attack_vector="network",
    attack_complexity="low",
    privileges_required="low",
    user_interaction="none",
    scope="unchanged",
    confidentiality_impact="high",
    integrity_impact="high",
    availability_impact="none",
)


def action_matches(granted: str, action: str) -> bool:
    """True if the *granted* action string (possibly wildcarded) covers *action*."""
    return fnmatchcase(action.lower(), granted.lower())


class IAMAnalyzer:
    """Evaluates each policy independently; never mutates its input."""

    name = "iam"
    target_types = (IAMPolicy,)
    budgeted = False

    def __init__(
        self,
        dangerous_actions: Iterable[str],
        *,
        stale_after_days: int = 90,
        clock: Callable = utcnow,
    ) -> None:
        self._dangerous_actions: Tuple[str, ...] = tuple(dangerous_actions)
        self._stale_after = timedelta(days=stale_after_days)
        self._clock = clock
        self._scores = {
            "any": calculate_score(WILDCARD_ACTION_ANY),
            "service": calculate_score(WILDCARD_ACTION_SERVICE),
            "resource": calculate_score(WILDCARD_RESOURCE),
            "stale": calculate_score(STALE_POLICY),
            "dangerous": calculate_score(DANGEROUS_UNCONDITIONED),
        }

    def dangerous_matches(self, permission: IAMPermission) -> List[str]:
        return [a for a in self._dangerous_actions if action_matches(permission.action, a)]

    def scan(self, target: IAMPolicy) -> List[Finding]:
        findings: List[Finding] = []
        now = self._clock()

        for idx, perm in enumerate(target.permissions, 1):
            if not perm.allows:
                continue
            if "*" in perm.action:
                findings.append(self._wildcard_action(target, idx, perm, now))
            if perm.resource.strip() == "*":
                findings.append(self._wildcard_resource(target, idx, perm, now))
            if not perm.has_condition:
                matched = self.dangerous_matches(perm)
                if matched:
                    findings.append(self._dangerous(target, idx, perm, matched, now))

        stale = self._stale(target, now)
        if stale is not None:
            findings.append(stale)

        if findings:
            logger.debug("%s: %d IAM finding(s)", target.location, len(findings))
        return findings

    # ---- individual checks ----

    def _finding(
        self,
        rule_id: str,
        policy: IAMPolicy,
        line: int,
        title: str,
        description: str,
        score: CVSSScore,
        evidence: str,
        remediation: str,
        cwe: str,
        now,
    ) -> Finding:
        return Finding(
            id=make_finding_id(rule_id, policy.location, line),
            rule_id=rule_id,
            title=title,
            description=description,
            severity=score.severity,
            category="iam_misconfiguration",
            location=Location(policy.location, line),
            evidence=evidence,
            remediation=remediation,
            cvss=score,
            references=(_AWS_LEAST_PRIVILEGE,),
            cwe=cwe,
            detected_at=now,
        )

    def _wildcard_action(self, policy: IAMPolicy, idx: int, perm: IAMPermission, now) -> Finding:
        full = perm.action.strip() == "*"
        return self._finding(
            "IAM_WILDCARD_ACTION",
            policy,
            idx,
            title="Wildcard action granted",
            description=(
                f"Policy {policy.name!r} allows {perm.action!r}"
                + (", i.e. every action on every service." if full else ", every action of the service.")
            ),
            score=self._scores["any" if full else "service"],
            evidence=f"allow {perm.action} on {perm.resource}",
            remediation="Replace the wildcard with the explicit list of actions the principal needs.",
            cwe="CWE-269",
            now=now,
        )

    def _wildcard_resource(self, policy: IAMPolicy, idx: int, perm: IAMPermission, now) -> Finding:
        return self._finding(
            "IAM_WILDCARD_RESOURCE",
            policy,
            idx,
            title="Wildcard resource granted",
            description=f"Policy {policy.name!r} applies {perm.action!r} to every resource.",
            score=self._scores["resource"],
            evidence=f"allow {perm.action} on *",
            remediation="Scope the permission to specific resource identifiers (ARNs, resource paths).",
            cwe="CWE-732",
            now=now,
        )

    def _dangerous(
        self,
        policy: IAMPolicy,
        idx: int,
        perm: IAMPermission,
        matched: List[str],
        now,
    ) -> Finding:
        shown = ", ".join(matched[:5]) + (f" (+{len(matched) - 5} more)" if len(matched) > 5 else "")
        return self._finding(
            "IAM_DANGEROUS_ACTION_UNCONDITIONED",
            policy,
            idx,
            title="Privilege-escalation action without condition",
            description=(
                f"Policy {policy.name!r} grants {perm.action!r} with no condition; "
                f"this covers {shown}, which allow a principal to escalate its own privileges."
            ),
            score=self._scores["dangerous"],
            evidence=f"allow {perm.action} on {perm.resource} (no condition)",
            remediation=(
                "Restrict the grant with conditions (MFA, source identity, resource tags, "
                "permission boundaries) or remove it."
            ),
            cwe="CWE-269",
            now=now,
        )

    def _stale(self, policy: IAMPolicy, now) -> Optional[Finding]:
        if policy.last_used is None:
            return None
        age = now - policy.last_used
        if age <= self._stale_after:
            return None
        return self._finding(
            "IAM_STALE_POLICY",
            policy,
            0,
            title="Unused policy",
            description=(
                f"Policy {policy.name!r} was last used {age.days} days ago "
                f"(threshold {self._stale_after.days} days)."
            ),
            score=self._scores["stale"],
            evidence=f"lastUsed {policy.last_used.isoformat()}",
            remediation="Remove the policy or detach it from principals that no longer need it.",
            cwe="CWE-1188",
            now=now,
        )
