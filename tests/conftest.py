import sys
from pathlib import Path

import pytest

# Ensure the project root is available on the Python path when running the tests.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from factsengine import RuleSet, RulesEngine  # noqa: E402


@pytest.fixture
def rules() -> RuleSet:
    return RuleSet()


@pytest.fixture
def engine(rules: RuleSet) -> RulesEngine:
    return RulesEngine(rules, facts={"x": 1, "y": 1})
