"""Rule catalog — models, templates, builder, built-in rules."""

from vulnaudit.rules.models import Rule, SecretPattern
from vulnaudit.rules.registry import CatalogBuilder, RuleCatalog, build_catalog

__all__ = ["CatalogBuilder", "Rule", "RuleCatalog", "SecretPattern", "build_catalog"]
