"""Pytest configuration for property-based tests.

Hypothesis profiles are selected with the HYPOTHESIS_PROFILE environment
variable ("ci", "quick" or "thorough"); the default profile is used otherwise.
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,  # shared CI runners are slow
    verbosity=Verbosity.normal,
)

settings.register_profile(
    "quick",
    max_examples=10,
    deadline=None,
    phases=[Phase.explicit, Phase.generate],
)

settings.register_profile(
    "thorough",
    max_examples=1000,
    deadline=None,
)

_profile = os.environ.get("HYPOTHESIS_PROFILE", "default")
if _profile in ("ci", "quick", "thorough"):
    settings.load_profile(_profile)


def pytest_collection_modifyitems(config, items):
    """Mark everything under tests/property with the 'property' marker."""
    for item in items:
        if "property" in item.path.parts:
            item.add_marker(pytest.mark.property)
