"""
Tests for the SQLAlchemy schedule store
"""

from datetime import date
from decimal import Decimal

import pytest

from emi_calc.data_models import LoanTerms, Periodicity
from emi_calc.engine import generate_schedule
from emi_calc.schedule_store import MAX_LOAN_ID_LENGTH, ScheduleStore, create_store_from_env


@pytest.fixture
def store():
    return ScheduleStore("sqlite:///:memory:")


def make_schedule(principal="50000", tenure=12, periodicity=Periodicity.MONTHLY):
    return generate_schedule(
        LoanTerms(Decimal(principal), Decimal("24"), tenure, periodicity, date(2024, 1, 1))
    )


class TestScheduleStore:
    """Test storing and retrieving schedules"""

    def test_round_trip_preserves_values(self, store):
        schedule = make_schedule()
        store.replace_schedule("LN-001", schedule)

        loaded = store.get_schedule("LN-001")
        assert loaded == schedule
        assert isinstance(loaded, tuple)

    def test_amounts_reload_in_whole_cents(self, store):
        schedule = make_schedule(principal="1000.01", tenure=3)
        store.replace_schedule("LN-002", schedule)

        loaded = store.get_schedule("LN-002")
        assert loaded == schedule
        assert sum(i.principal_component for i in loaded) == Decimal("1000.01")
        for installment in loaded:
            for amount in (installment.principal_component, installment.interest_component,
                           installment.total_due, installment.outstanding_principal_after):
                assert amount == amount.quantize(Decimal("0.01"))

    def test_replace_discards_previous_schedule(self, store):
        store.replace_schedule("LN-001", make_schedule(tenure=12))
        replacement = make_schedule(principal="15000", tenure=14, periodicity=Periodicity.WEEKLY)
        store.replace_schedule("LN-001", replacement)

        loaded = store.get_schedule("LN-001")
        assert len(loaded) == 14
        assert loaded == replacement

    def test_missing_loan_returns_empty_schedule(self, store):
        assert store.get_schedule("nope") == ()

    def test_delete(self, store):
        store.replace_schedule("LN-001", make_schedule())

        assert store.delete_schedule("LN-001") is True
        assert store.get_schedule("LN-001") == ()
        assert store.delete_schedule("LN-001") is False

    def test_list_loan_ids(self, store):
        store.replace_schedule("LN-B", make_schedule())
        store.replace_schedule("LN-A", make_schedule(tenure=3))

        assert store.list_loan_ids() == ["LN-A", "LN-B"]

    def test_empty_loan_id_rejected(self, store):
        with pytest.raises(ValueError):
            store.replace_schedule("", make_schedule())

    def test_overlong_loan_id_rejected(self, store):
        with pytest.raises(ValueError, match="at most 64 characters"):
            store.replace_schedule("x" * 65, make_schedule())
        assert store.list_loan_ids() == []

    def test_loan_id_at_length_limit_accepted(self, store):
        loan_id = "x" * MAX_LOAN_ID_LENGTH
        store.replace_schedule(loan_id, make_schedule(tenure=3))
        assert store.list_loan_ids() == [loan_id]

    def test_file_backed_store(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'schedules.sqlite3'}"
        create_store_from_env(url).replace_schedule("LN-001", make_schedule(tenure=6))

        reopened = create_store_from_env(url)
        assert len(reopened.get_schedule("LN-001")) == 6
