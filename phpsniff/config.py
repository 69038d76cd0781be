from __future__ import annotations

"""
Checker configuration: which rules are enabled and how they are instantiated.

RULE_REGISTRY is the static lookup table of every rule the tool ships; the
CLI narrows it down with --rule. The symbol table and any factory-method
extensions are run-wide state that rules and `infer` read from the config.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Sequence

from phpsniff.extensions.factory_method import FactoryMethodReturnTypeExtension
from phpsniff.rules.array_trailing_comma import ForbiddenArrayTrailingCommaRule
from phpsniff.rules.base import Rule
from phpsniff.rules.function_comment import FunctionCommentRule
from phpsniff.rules.strict_declaration import StrictDeclarationRule
from phpsniff.rules.yoda_condition import YodaConditionRule
from phpsniff.symbols import SymbolTable

RULE_REGISTRY: dict[str, type[Rule]] = {
    rule.id: rule
    for rule in (
        StrictDeclarationRule,
        FunctionCommentRule,
        YodaConditionRule,
        ForbiddenArrayTrailingCommaRule,
    )
}


class UnknownRuleError(ValueError):
    """Raised when a rule id is not in RULE_REGISTRY."""

    def __init__(self, rule_ids: Sequence[str]) -> None:
        self.rule_ids = list(rule_ids)
        known = ", ".join(sorted(RULE_REGISTRY))
        super().__init__(f"Unknown rule id(s): {', '.join(self.rule_ids)} (known: {known})")


@dataclass
class Config:
    """
    Checker configuration.

    Carries the enabled rules, the class hierarchy of the files being
    checked, and the factory-method extensions used by `infer`.
    """

    rules: Sequence[Rule] = field(default_factory=list)
    symbols: SymbolTable = field(default_factory=SymbolTable)
    extensions: Sequence[FactoryMethodReturnTypeExtension] = field(default_factory=list)


def select_rules(rule_ids: Iterable[str]) -> List[Rule]:
    """Instantiate the rules named by rule_ids, in registry order."""
    wanted = list(dict.fromkeys(rule_ids))
    unknown = [r for r in wanted if r not in RULE_REGISTRY]
    if unknown:
        raise UnknownRuleError(unknown)
    return [cls() for rule_id, cls in RULE_REGISTRY.items() if rule_id in wanted]


def get_default_config() -> Config:
    """Return the default configuration with every registered rule enabled."""
    return Config(rules=[cls() for cls in RULE_REGISTRY.values()])


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """Return the list of enabled rules from the given config (or default config)."""
    if config is None:
        config = get_default_config()
    return config.rules
