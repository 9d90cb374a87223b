"""Unit tests for the CSV export."""

from services.export_service import export_csv, format_amount


class TestExportCsv:

    def test_single_expense(self):
        expenses = [{'date': '2024-01-05', 'category': 'Food', 'description': 'Lunch', 'amount': 12.5}]

        assert export_csv(expenses) == 'Date,Category,Description,Amount\n2024-01-05,Food,"Lunch",12.5'

    def test_empty_list_is_header_only(self):
        assert export_csv([]) == 'Date,Category,Description,Amount'

    def test_rows_keep_input_order(self):
        expenses = [
            {'date': '2024-02-01', 'category': 'Housing', 'description': 'Rent', 'amount': 800.0},
            {'date': '2024-01-05', 'category': 'Food', 'description': 'Lunch', 'amount': 12.5},
        ]

        lines = export_csv(expenses).split('\n')

        assert lines[1] == '2024-02-01,Housing,"Rent",800'
        assert lines[2] == '2024-01-05,Food,"Lunch",12.5'

    def test_quotes_in_description_are_doubled(self):
        expenses = [{'date': '2024-01-05', 'category': 'Food', 'description': 'The "good" place, again', 'amount': 3}]

        assert export_csv(expenses).split('\n')[1] == '2024-01-05,Food,"The ""good"" place, again",3'


class TestFormatAmount:

    def test_whole_floats_drop_the_fraction(self):
        assert format_amount(800.0) == '800'

    def test_fractions_are_kept(self):
        assert format_amount(0.1) == '0.1'
        assert format_amount(-4.25) == '-4.25'

    def test_missing_amount_is_blank(self):
        assert format_amount(None) == ''

    def test_small_numbers_use_short_exponent(self):
        assert format_amount(1e-7) == '1e-7'
        assert format_amount(1.5e-7) == '1.5e-7'
        assert format_amount(-2e-9) == '-2e-9'

    def test_six_decimal_places_stay_plain(self):
        assert format_amount(0.000001) == '0.000001'
        assert format_amount(0.00012) == '0.00012'

    def test_large_numbers(self):
        assert format_amount(1e16) == '10000000000000000'
        assert format_amount(1e21) == '1e+21'
        assert format_amount(1.25e22) == '1.25e+22'

    def test_integers_and_zero(self):
        assert format_amount(3) == '3'
        assert format_amount(0.0) == '0'
        assert format_amount(-0.0) == '0'
