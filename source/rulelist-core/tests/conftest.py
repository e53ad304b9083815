"""Pytest configuration and fixtures for rulelist Core tests."""

import pytest

from rulelist_core.rules import Rule


class RecordingRenderer:
    """Renderer that records every list it was asked to draw."""

    def __init__(self):
        self.calls = []

    def render(self, rules):
        self.calls.append([rule.to_dict() for rule in rules])

    @property
    def count(self):
        return len(self.calls)


def _make_rule(match_value, rule_type="HEADER-KEYWORD", action="DIRECT", **kwargs):
    return Rule(rule_type=rule_type, match_value=match_value, action=action, **kwargs)


@pytest.fixture
def make_rule():
    """Factory for normal rules."""
    return _make_rule


@pytest.fixture
def sample_rules():
    """Three normal rules followed by the FINAL rule."""
    return [
        _make_rule("chrome", action="REPLACE", rewrite_value="Mozilla/5.0"),
        _make_rule("curl", action="DELETE"),
        _make_rule("10.0.0.0/8", rule_type="IP-CIDR", action="DROP", enabled=False),
        Rule.final(),
    ]


@pytest.fixture
def store(sample_rules):
    """RuleStore holding the sample rules."""
    from rulelist_core.rules import RuleStore
    return RuleStore(sample_rules)


@pytest.fixture
def schema():
    from rulelist_core.rules import default_schema
    return default_schema()


@pytest.fixture
def persister():
    from rulelist_core.persistence import MemoryPersister
    return MemoryPersister()


@pytest.fixture
def failing_persister():
    from rulelist_core.persistence import MemoryPersister
    return MemoryPersister(fail=True)


@pytest.fixture
def renderer():
    return RecordingRenderer()
