"""Registry for discovering and executing pattern rules."""
from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Dict, Type

from .models import DiaryWindow, PatternContext, PatternDetection
from .pattern_metadata import should_evaluate_rule
from .rule_base import PatternRule


class RuleRegistry:
    """Keeps track of available rules by id, in registration order."""

    def __init__(self) -> None:
        self._rules: Dict[str, PatternRule] = {}

    def register(self, rule_cls: Type[PatternRule]) -> Type[PatternRule]:
        if rule_cls.id in self._rules:
            raise ValueError(f"Rule '{rule_cls.id}' already registered")
        self._rules[rule_cls.id] = rule_cls()
        return rule_cls

    def unregister(self, rule_id: str) -> None:
        del self._rules[rule_id]

    def clear(self) -> None:
        """Remove all registered rules."""

        self._rules.clear()

    def get(self, rule_id: str) -> PatternRule:
        return self._rules[rule_id]

    def ids(self) -> list[str]:
        return list(self._rules)

    def items(self) -> Iterable[tuple[str, PatternRule]]:
        return self._rules.items()

    def values(self) -> Iterable[PatternRule]:
        return self._rules.values()

    def detect_all(
        self,
        window: DiaryWindow,
        context: PatternContext,
        predicate: Callable[[PatternRule], bool] | None = None,
    ) -> list[PatternDetection]:
        """Run every registered rule in order, optionally filtering."""

        outputs: list[PatternDetection] = []
        for rule in self._rules.values():
            if predicate is not None and not predicate(rule):
                continue
            if not should_evaluate_rule(rule, context):
                continue
            outputs.append(rule.detect(window, context))
        return outputs


registry = RuleRegistry()


def register_rule(rule_cls: Type[PatternRule]) -> Type[PatternRule]:
    """Decorator for registering a rule at definition time."""

    return registry.register(rule_cls)
