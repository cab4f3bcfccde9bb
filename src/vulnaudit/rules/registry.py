"""Rule catalog — built once from built-in and custom rules, then frozen."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

import yaml

from vulnaudit.config.loader import ConfigError
from vulnaudit.config.schema import AuditConfig
from vulnaudit.rules.models import Rule, SecretPattern
from vulnaudit.scoring.cvss import CVSSError, parse_vector

logger = logging.getLogger(__name__)


class RuleCatalog:
    """Read-only view over the rules, secret patterns and IAM action list of
    one engine instance. Build it with :class:`CatalogBuilder`."""

    __slots__ = ("_rules", "_secret_patterns", "_dangerous_actions", "_by_id")

    def __init__(
        self,
        rules: Iterable[Rule],
        secret_patterns: Iterable[SecretPattern],
        dangerous_actions: Iterable[str],
    ) -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._secret_patterns: Tuple[SecretPattern, ...] = tuple(secret_patterns)
        self._dangerous_actions: Tuple[str, ...] = tuple(dangerous_actions)
        self._by_id: Dict[str, Rule] = {r.id: r for r in self._rules}

    @property
    def rules(self) -> Tuple[Rule, ...]:
        return self._rules

    @property
    def secret_patterns(self) -> Tuple[SecretPattern, ...]:
        return self._secret_patterns

    @property
    def dangerous_actions(self) -> Tuple[str, ...]:
        return self._dangerous_actions

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def by_category(self) -> Dict[str, List[Rule]]:
        grouped: Dict[str, List[Rule]] = {}
        for rule in self._rules:
            grouped.setdefault(rule.category, []).append(rule)
        return grouped

    def __len__(self) -> int:
        return len(self._rules) + len(self._secret_patterns)


class CatalogBuilder:
    """Collects rules, applies enable/disable filters, and builds a catalog."""

    def __init__(self) -> None:
        self._rules: Dict[str, Rule] = {}
        self._secret_patterns: Dict[str, SecretPattern] = {}
        self._dangerous_actions: List[str] = []
        self._enable: List[str] = []
        self._disable: List[str] = []

    # ---- registration ----

    def register(self, rule: Rule) -> "CatalogBuilder":
        self._rules[rule.id] = rule
        return self

    def register_many(self, rules: Iterable[Rule]) -> "CatalogBuilder":
        for r in rules:
            self.register(r)
        return self

    def register_secret(self, pattern: SecretPattern) -> "CatalogBuilder":
        self._secret_patterns[pattern.id] = pattern
        return self

    def register_secrets(self, patterns: Iterable[SecretPattern]) -> "CatalogBuilder":
        for p in patterns:
            self.register_secret(p)
        return self

    def add_dangerous_actions(self, actions: Iterable[str]) -> "CatalogBuilder":
        for action in actions:
            if action not in self._dangerous_actions:
                self._dangerous_actions.append(action)
        return self

    # ---- config filtering ----

    def apply_config(self, config: AuditConfig) -> "CatalogBuilder":
        """Record enable / disable lists from config.rules."""
        self._enable = list(config.rules.enable)
        self._disable = list(config.rules.disable)
        self.add_dangerous_actions(config.iam.extra_dangerous_actions)
        return self

    def _is_enabled(self, rule_id: str) -> bool:
        # Disable list always takes precedence
        if rule_id in self._disable:
            return False
        if self._enable:
            return rule_id in self._enable
        return True

    # ---- custom rule loading ----

    def load_custom_rules(self, directory: Path) -> int:
        """Load YAML rule files from *directory*. Returns count loaded."""
        count = 0
        if not directory.is_dir():
            return 0
        for path in sorted(directory.iterdir()):
            if path.suffix in (".yaml", ".yml"):
                count += self._load_yaml_rules(path)
        logger.debug("Loaded %d custom rule(s) from %s", count, directory)
        return count

    def _load_yaml_rules(self, path: Path) -> int:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Failed to read custom rules {path}: {exc}") from exc
        if data is None:
            return 0
        if not isinstance(data, list):
            data = [data]
        count = 0
        for entry in data:
            if not isinstance(entry, dict):
                raise ConfigError(f"{path}: each rule must be a mapping")
            if entry.get("kind", "rule") == "secret":
                self.register_secret(self._secret_from_entry(entry, path))
            else:
                self.register(self._rule_from_entry(entry, path))
            count += 1
        return count

    @staticmethod
    def _rule_from_entry(entry: dict, path: Path) -> Rule:
        try:
            rule_id = entry["id"]
            metrics = parse_vector(entry["cvss"]) if entry.get("cvss") else None
            return Rule(
                id=rule_id,
                name=entry.get("name", rule_id),
                description=entry.get("description", ""),
                category=entry["category"],
                cwe=str(entry.get("cwe", "")),
                pattern=entry["pattern"],
                remediation=entry.get("remediation", ""),
                metrics=metrics,
                references=tuple(entry.get("references", ())),
                file_patterns=tuple(entry["file_patterns"]) if entry.get("file_patterns") else None,
                window=int(entry.get("window", 1)),
            )
        except KeyError as exc:
            raise ConfigError(f"{path}: rule is missing required key {exc}") from exc
        except CVSSError as exc:
            raise ConfigError(f"{path}: invalid cvss vector: {exc}") from exc

    @staticmethod
    def _secret_from_entry(entry: dict, path: Path) -> SecretPattern:
        try:
            return SecretPattern(
                id=entry["id"],
                name=entry.get("name", entry["id"]),
                description=entry.get("description", ""),
                pattern=entry["pattern"],
                severity=entry.get("severity", "high"),
                entropy_threshold=float(entry.get("entropy_threshold", 3.0)),
            )
        except KeyError as exc:
            raise ConfigError(f"{path}: secret pattern is missing required key {exc}") from exc

    # ---- build ----

    def build(self) -> RuleCatalog:
        rules = [r for r in self._rules.values() if self._is_enabled(r.id)]
        secrets = [p for p in self._secret_patterns.values() if self._is_enabled(p.id)]
        return RuleCatalog(rules, secrets, self._dangerous_actions)


def build_catalog(config: AuditConfig, root: Optional[Path] = None) -> RuleCatalog:
    """Create a fully populated, config-filtered rule catalog."""
    from vulnaudit.rules.builtin import (
        ALL_BUILTIN_RULES,
        ALL_SECRET_PATTERNS,
        DANGEROUS_ACTIONS,
    )

    builder = CatalogBuilder()
    builder.register_many(ALL_BUILTIN_RULES)
    builder.register_secrets(ALL_SECRET_PATTERNS)
    builder.add_dangerous_actions(DANGEROUS_ACTIONS)

    if root is not None:
        builder.load_custom_rules(root / config.rules.custom_dir)

    builder.apply_config(config)
    catalog = builder.build()
    logger.debug(
        "Catalog built: %d rules, %d secret patterns, %d dangerous actions",
        len(catalog.rules),
        len(catalog.secret_patterns),
        len(catalog.dangerous_actions),
    )
    return catalog
