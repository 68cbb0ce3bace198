"""Declared relationship weights.

A weights file (YAML or JSON) overrides the default weight of matching
relationships or disables them::

    joins:
      - left: orders
        right: customers
        weight: 3
      - left: orders
        right: customers
        columns:
          - {left: billing_customer_id, right: id}
        enabled: false
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
import os
from typing import Any

import yaml

from ..core.exceptions import ConfigError
from .models import Relationship

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class JoinColumnRule:
    left: str
    right: str


@dataclass(frozen=True)
class JoinRule:
    name: str
    left: str
    right: str
    columns: tuple[JoinColumnRule, ...] = ()
    weight: int = 1
    enabled: bool = True

    def matches(self, rel: Relationship) -> bool:
        if (rel.from_table, rel.to_table) == (self.left, self.right):
            pair = (rel.from_column.lower(), rel.to_column.lower())
        elif (rel.from_table, rel.to_table) == (self.right, self.left):
            pair = (rel.to_column.lower(), rel.from_column.lower())
        else:
            return False
        if not self.columns:
            return True
        return any((col.left.lower(), col.right.lower()) == pair for col in self.columns)


@dataclass
class JoinRules:
    joins: list[JoinRule] = field(default_factory=list)

    def rule_for(self, rel: Relationship) -> JoinRule | None:
        """Most specific matching rule: column-level rules win over table-level ones."""
        table_level: JoinRule | None = None
        for rule in self.joins:
            if not rule.matches(rel):
                continue
            if rule.columns:
                return rule
            if table_level is None:
                table_level = rule
        return table_level


def _load_payload(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            if path.lower().endswith(".json"):
                payload = json.load(handle)
            else:
                payload = yaml.safe_load(handle) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Malformed weights file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"Weights file {path} must contain a mapping")
    return payload


def load_join_rules(path: str | None) -> JoinRules:
    if not path:
        return JoinRules()
    resolved = os.path.abspath(path)
    if not os.path.exists(resolved):
        logger.warning(f"Weights file not found: {resolved}")
        return JoinRules()

    payload = _load_payload(resolved)
    joins: list[JoinRule] = []
    for item in payload.get("joins", []) or []:
        if not isinstance(item, dict):
            raise ConfigError(f"Join rules in {resolved} must be mappings, got {item!r}")
        left = item.get("left")
        right = item.get("right")
        if not left or not right:
            continue
        left, right = str(left).lower(), str(right).lower()
        name = item.get("name") or f"{left}->{right}"
        columns_payload = item.get("columns", []) or []
        columns = tuple(
            JoinColumnRule(left=str(col.get("left")), right=str(col.get("right")))
            for col in columns_payload
            if isinstance(col, dict) and col.get("left") and col.get("right")
        )
        try:
            weight = int(item.get("weight", 1))
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Join rule '{name}' has a non-integer weight") from exc
        if weight < 1:
            raise ConfigError(f"Join rule '{name}' must have a positive weight, got {weight}")
        enabled = bool(item.get("enabled", True))
        joins.append(
            JoinRule(
                name=name,
                left=left,
                right=right,
                columns=columns,
                weight=weight,
                enabled=enabled,
            )
        )

    logger.info(f"Loaded {len(joins)} join rules from {resolved}")
    return JoinRules(joins=joins)
