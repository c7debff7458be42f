"""
Shared fixtures for validation tests.
"""

import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from modules.validation.core.registry import RuleRegistry  # noqa: E402


@pytest.fixture
def registry() -> RuleRegistry:
    """Fresh registry with built-ins only, so custom rules never leak between tests"""
    return RuleRegistry.with_builtins()


@pytest.fixture
def calls() -> list:
    """Call log for rules with an observable side effect"""
    return []
