"""Unit tests for weights files."""

from __future__ import annotations

import json

import pytest

from csvgraph.core.exceptions import ConfigError
from csvgraph.schema.join_rules import JoinColumnRule, JoinRule, JoinRules, load_join_rules
from csvgraph.schema.models import Relationship

BILLING = Relationship("orders", "billing_customer_id", "customers", "id")
SHIPPING = Relationship("orders", "customer_id", "customers", "id")


class TestLoadJoinRules:
    """Tests for load_join_rules."""

    def test_no_path(self):
        """No weights file means no rules."""
        assert load_join_rules(None).joins == []

    def test_missing_file(self, tmp_path):
        """A missing file means no rules."""
        assert load_join_rules(str(tmp_path / "absent.yaml")).joins == []

    def test_yaml(self, tmp_path):
        """YAML rules are read with lower-cased table names."""
        path = tmp_path / "weights.yaml"
        path.write_text(
            "joins:\n"
            "  - left: Orders\n"
            "    right: Customers\n"
            "    weight: 3\n"
            "  - name: billing\n"
            "    left: orders\n"
            "    right: customers\n"
            "    columns:\n"
            "      - {left: billing_customer_id, right: id}\n"
            "    enabled: false\n",
            encoding="utf-8",
        )
        rules = load_join_rules(str(path))
        assert rules.joins == [
            JoinRule(name="orders->customers", left="orders", right="customers", weight=3),
            JoinRule(
                name="billing",
                left="orders",
                right="customers",
                columns=(JoinColumnRule("billing_customer_id", "id"),),
                enabled=False,
            ),
        ]

    def test_json(self, tmp_path):
        """A .json file is read as JSON."""
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"joins": [{"left": "a", "right": "b", "weight": 2}]}), encoding="utf-8")
        (rule,) = load_join_rules(str(path)).joins
        assert (rule.left, rule.right, rule.weight) == ("a", "b", 2)

    def test_entries_without_tables_are_skipped(self, tmp_path):
        """Rules must name both tables."""
        path = tmp_path / "weights.yaml"
        path.write_text("joins:\n  - left: a\n    weight: 2\n", encoding="utf-8")
        assert load_join_rules(str(path)).joins == []

    def test_empty_file(self, tmp_path):
        """An empty YAML file has no rules."""
        path = tmp_path / "weights.yaml"
        path.write_text("", encoding="utf-8")
        assert load_join_rules(str(path)).joins == []

    @pytest.mark.parametrize("weight", [0, -2, "heavy"])
    def test_bad_weight(self, tmp_path, weight):
        """Weights must be positive integers."""
        path = tmp_path / "weights.json"
        path.write_text(json.dumps({"joins": [{"left": "a", "right": "b", "weight": weight}]}), encoding="utf-8")
        with pytest.raises(ConfigError):
            load_join_rules(str(path))

    @pytest.mark.parametrize("content", ["joins: [unclosed\n", "- just\n- a list\n"])
    def test_malformed_file(self, tmp_path, content):
        """Unreadable or non-mapping content is a ConfigError."""
        path = tmp_path / "weights.yaml"
        path.write_text(content, encoding="utf-8")
        with pytest.raises(ConfigError):
            load_join_rules(str(path))


class TestRuleMatching:
    """Tests for JoinRule.matches and JoinRules.rule_for."""

    def test_matches_either_orientation(self):
        """left/right may be written in either direction."""
        assert JoinRule(name="r", left="orders", right="customers").matches(SHIPPING)
        assert JoinRule(name="r", left="customers", right="orders").matches(SHIPPING)
        assert not JoinRule(name="r", left="orders", right="items").matches(SHIPPING)

    def test_column_rule_follows_orientation(self):
        """Column pairs are read in the rule's own left/right order."""
        reversed_rule = JoinRule(
            name="r", left="customers", right="orders", columns=(JoinColumnRule("id", "billing_customer_id"),)
        )
        assert reversed_rule.matches(BILLING)
        assert not reversed_rule.matches(SHIPPING)

    def test_column_rule_wins_over_table_rule(self):
        """The most specific rule applies regardless of order."""
        table_rule = JoinRule(name="tables", left="orders", right="customers", weight=2)
        column_rule = JoinRule(
            name="billing", left="orders", right="customers", columns=(JoinColumnRule("BILLING_CUSTOMER_ID", "id"),)
        )
        rules = JoinRules([table_rule, column_rule])
        assert rules.rule_for(BILLING) is column_rule
        assert rules.rule_for(SHIPPING) is table_rule

    def test_no_match(self):
        """Unrelated relationships have no rule."""
        assert JoinRules().rule_for(BILLING) is None
