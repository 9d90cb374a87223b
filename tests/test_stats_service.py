"""Unit tests for expense statistics."""

import itertools
from datetime import date

import pytest

from services import stats_service


@pytest.fixture
def expenses():
    """A small mixed collection; amounts are exact binary fractions."""
    return [
        {'id': '1', 'date': '2024-01-05', 'category': 'Food', 'description': 'Lunch', 'amount': 12.5},
        {'id': '2', 'date': '2024-01-20', 'category': 'Housing', 'description': 'Rent', 'amount': 800.0},
        {'id': '3', 'date': '2024-02-01', 'category': 'Food', 'description': 'Groceries', 'amount': 45.25},
        {'id': '4', 'date': '2024-02-14', 'category': 'Entertainment', 'description': 'Cinema', 'amount': 20.0},
    ]


class TestTotals:

    def test_total(self, expenses):
        assert stats_service.total_amount(expenses) == 877.75

    def test_total_is_order_independent(self, expenses):
        totals = {stats_service.total_amount(p) for p in itertools.permutations(expenses)}

        assert totals == {877.75}

    def test_category_totals_partition_the_total(self, expenses):
        by_category = stats_service.totals_by_category(expenses)

        assert by_category == {'Food': 57.75, 'Housing': 800.0, 'Entertainment': 20.0}
        assert sum(by_category.values()) == stats_service.total_amount(expenses)

    def test_month_totals(self, expenses):
        assert stats_service.totals_by_month(expenses) == {'2024-01': 812.5, '2024-02': 65.25}

    def test_malformed_or_missing_date_goes_to_unknown(self):
        records = [
            {'date': 'yesterday', 'category': 'Food', 'amount': 1},
            {'category': 'Food', 'amount': 2},
            {'date': None, 'category': 'Food', 'amount': 3},
            {'date': '2024-03-01', 'category': 'Food', 'amount': 4},
        ]

        assert stats_service.totals_by_month(records) == {'Unknown': 6.0, '2024-03': 4.0}

    def test_date_objects_are_accepted(self):
        records = [{'date': date(2024, 5, 9), 'category': 'Food', 'amount': 1}]

        assert stats_service.totals_by_month(records) == {'2024-05': 1.0}

    def test_missing_or_bad_amount_counts_as_zero(self):
        records = [
            {'category': 'Food', 'amount': 10},
            {'category': 'Food'},
            {'category': 'Food', 'amount': None},
            {'category': 'Food', 'amount': 'oops'},
            {'category': 'Food', 'amount': float('nan')},
            {'category': 'Food', 'amount': '2.5'},
        ]

        assert stats_service.total_amount(records) == 12.5
        assert stats_service.totals_by_category(records) == {'Food': 12.5}

    def test_missing_category_is_uncategorized(self):
        assert stats_service.totals_by_category([{'amount': 3}]) == {'Uncategorized': 3.0}


class TestTopCategory:

    def test_highest_total_wins(self, expenses):
        by_category = stats_service.totals_by_category(expenses)

        assert stats_service.top_category(by_category) == ('Housing', 800.0)

    def test_ties_go_to_first_seen(self):
        assert stats_service.top_category({'A': 100.0, 'B': 100.0}) == ('A', 100.0)

    def test_ties_follow_record_order(self):
        records = [
            {'category': 'B', 'amount': 100},
            {'category': 'A', 'amount': 100},
        ]

        by_category = stats_service.totals_by_category(records)

        assert stats_service.top_category(by_category) == ('B', 100.0)

    def test_empty_collection(self):
        assert stats_service.top_category({}) == ('None', 0.0)

    def test_nothing_above_zero(self):
        assert stats_service.top_category({'Refunds': -20.0}) == ('None', 0.0)


class TestComputeStats:

    def test_full_summary(self, expenses):
        stats = stats_service.compute_stats(expenses, {'Food': 50, 'Health': 30}, today=date(2024, 2, 20))

        assert stats['count'] == 4
        assert stats['total'] == 877.75
        assert stats['top_category'] == 'Housing'
        assert stats['top_category_amount'] == 800.0
        assert stats['this_month'] == 65.25
        assert stats['chart_data'][0] == {'name': 'Food', 'value': 57.75}
        assert stats['budgets']['Food'] == {'limit': 50.0, 'spent': 57.75, 'remaining': -7.75, 'over_budget': True}
        assert stats['budgets']['Health'] == {'limit': 30.0, 'spent': 0.0, 'remaining': 30.0, 'over_budget': False}

    def test_empty_collection(self):
        stats = stats_service.compute_stats([], today=date(2024, 2, 20))

        assert stats['total'] == 0
        assert stats['by_category'] == {}
        assert stats['by_month'] == {}
        assert stats['top_category'] == 'None'
        assert stats['top_category_amount'] == 0
        assert stats['this_month'] == 0
        assert stats['budgets'] == {}

    def test_accepts_a_generator(self, expenses):
        stats = stats_service.compute_stats((e for e in expenses), today=date(2024, 1, 1))

        assert stats['count'] == 4
        assert stats['this_month'] == 812.5
