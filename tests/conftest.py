"""Mini README: Shared pytest fixtures for the festivalfund test-suite.

Structure:
    * scenario_store - two donations (500 and 1000) against one 300 expense
      with a 2000 fundraising goal.
"""

from __future__ import annotations

import pytest

from factories import ScriptedStore, make_donation, make_expense, make_settings


@pytest.fixture
def scenario_store() -> ScriptedStore:
    """Store holding the two-donation, one-expense scenario."""

    return ScriptedStore(
        donations=[
            make_donation("500", donor_name="Ravi"),
            make_donation("1000", category="Family", is_anonymous=True, donor_name="Meena"),
        ],
        expenses=[make_expense("300")],
        settings=make_settings("2000"),
    )
