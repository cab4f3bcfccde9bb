"""IAM policy models and document parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple


class PolicyParseError(Exception):
    """Raised when a policy document does not have the expected shape."""


@dataclass(frozen=True)
class IAMPermission:
    action: str
    resource: str
    effect: str = "allow"  # allow | deny
    condition: Mapping[str, Any] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "effect", _parse_effect(self.effect))

    @property
    def allows(self) -> bool:
        return self.effect == "allow"

    @property
    def has_condition(self) -> bool:
        return bool(self.condition)


@dataclass(frozen=True)
class IAMPolicy:
    name: str
    provider: str
    permissions: Tuple[IAMPermission, ...]
    last_used: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.last_used is not None and self.last_used.tzinfo is None:
            object.__setattr__(self, "last_used", self.last_used.replace(tzinfo=timezone.utc))

    @property
    def location(self) -> str:
        return f"iam://{self.provider}/{self.name}"


def _as_list(value: Any, what: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
        return list(value)
    raise PolicyParseError(f"{what} must be a string or a non-empty list of strings")


def _parse_effect(value: Any) -> str:
    if not isinstance(value, str) or value.lower() not in ("allow", "deny"):
        raise PolicyParseError(f"effect must be 'allow' or 'deny', got {value!r}")
    return value.lower()


def _parse_condition(value: Any) -> Mapping[str, Any]:
    if value is None:
        return MappingProxyType({})
    if not isinstance(value, dict):
        raise PolicyParseError("condition must be a mapping")
    return MappingProxyType(dict(value))


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        try:
            ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise PolicyParseError(f"lastUsed is not an ISO-8601 timestamp: {value!r}") from exc
    else:
        raise PolicyParseError(f"lastUsed must be a timestamp string, got {type(value).__name__}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _native_permissions(raw: Any) -> List[IAMPermission]:
    if not isinstance(raw, list):
        raise PolicyParseError("permissions must be a list")
    perms: List[IAMPermission] = []
    for i, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise PolicyParseError(f"permissions[{i}] must be a mapping")
        try:
            action = entry["action"]
            resource = entry["resource"]
        except KeyError as exc:
            raise PolicyParseError(f"permissions[{i}] is missing {exc}") from exc
        if not isinstance(action, str) or not isinstance(resource, str):
            raise PolicyParseError(f"permissions[{i}]: action and resource must be strings")
        perms.append(
            IAMPermission(
                action=action,
                resource=resource,
                effect=_parse_effect(entry.get("effect", "allow")),
                condition=_parse_condition(entry.get("condition")),
            )
        )
    return perms


def _statement_permissions(raw: Any) -> List[IAMPermission]:
    """Expand AWS-style statements into one permission per action/resource pair."""
    statements = [raw] if isinstance(raw, dict) else raw
    if not isinstance(statements, list):
        raise PolicyParseError("Statement must be an object or a list")
    perms: List[IAMPermission] = []
    for i, stmt in enumerate(statements):
        if not isinstance(stmt, dict):
            raise PolicyParseError(f"Statement[{i}] must be an object")
        if "Action" not in stmt:
            raise PolicyParseError(f"Statement[{i}] has no Action")
        actions = _as_list(stmt["Action"], f"Statement[{i}].Action")
        resources = _as_list(stmt.get("Resource", "*"), f"Statement[{i}].Resource")
        effect = _parse_effect(stmt.get("Effect", "Allow"))
        condition = _parse_condition(stmt.get("Condition"))
        for action in actions:
            for resource in resources:
                perms.append(IAMPermission(action, resource, effect, condition))
    return perms


def parse_policy(document: Dict[str, Any]) -> IAMPolicy:
    """Build an :class:`IAMPolicy` from a JSON document.

    Accepts the native shape (``name``, ``provider``, ``permissions``,
    ``lastUsed``) or an AWS policy document with a ``Statement`` key.
    """
    if not isinstance(document, dict):
        raise PolicyParseError("policy document must be a JSON object")

    name = document.get("name") or document.get("PolicyName") or document.get("Id")
    if not isinstance(name, str) or not name:
        raise PolicyParseError("policy has no name")
    provider = str(document.get("provider", "aws")).lower()

    if "permissions" in document:
        permissions = _native_permissions(document["permissions"])
    elif "Statement" in document:
        permissions = _statement_permissions(document["Statement"])
    else:
        raise PolicyParseError(f"policy {name!r} has neither 'permissions' nor 'Statement'")

    last_used = _parse_timestamp(document.get("lastUsed", document.get("last_used")))
    return IAMPolicy(
        name=name,
        provider=provider,
        permissions=tuple(permissions),
        last_used=last_used,
    )
