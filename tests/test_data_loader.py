"""
Tests for the table loader.
"""

import numpy as np
import pandas as pd
import pytest

from utils.data_loader import describe_quantitative, get_variable_metadata, load_table
from utils.errors import ParseError

COLUMNS = ['mpg', 'cylinders', 'year', 'name']
NUMERIC = ['mpg', 'cylinders', 'year']


class TestLoadTable:
    """Tests for load_table."""

    def test_quoted_names_with_spaces(self, write_table):
        """Quoted tokens keep their inner spaces."""
        path = write_table([
            '18.0   8   70\t"chevrolet chevelle malibu"',
            '26.0   4   71\t"volkswagen 1131 deluxe sedan"',
        ])
        df = load_table(path, COLUMNS, numeric_columns=NUMERIC)

        assert list(df.columns) == COLUMNS
        assert df['name'].tolist() == ['chevrolet chevelle malibu', 'volkswagen 1131 deluxe sedan']
        assert df['mpg'].dtype == float
        assert df['cylinders'].tolist() == [8.0, 4.0]

    def test_row_identity_from_name_and_year(self, write_table):
        """Index concatenates name and year without a trailing .0."""
        path = write_table([
            '17.0 6 70 "amc gremlin"',
            '19.0 6 71 "amc gremlin"',
        ])
        df = load_table(path, COLUMNS, numeric_columns=NUMERIC, id_columns=['name', 'year'])

        assert df.index.tolist() == ['amc gremlin 70', 'amc gremlin 71']
        assert df.index.is_unique

    def test_blank_lines_are_skipped(self, write_table):
        path = write_table(['18.0 8 70 "a"', '', '   ', '20.0 4 71 "b"'])
        df = load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert len(df) == 2

    def test_wrong_column_count(self, write_table):
        """A short row raises ParseError carrying its line number."""
        path = write_table(['18.0 8 70 "a"', '', '20.0 4 "b"'])
        with pytest.raises(ParseError) as excinfo:
            load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert excinfo.value.row == 3
        assert excinfo.value.column is None

    def test_extra_column(self, write_table):
        path = write_table(['18.0 8 70 "a" extra'])
        with pytest.raises(ParseError) as excinfo:
            load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert excinfo.value.row == 1

    def test_non_numeric_value(self, write_table):
        """An uncoercible numeric token names its row and column."""
        path = write_table(['18.0 8 70 "a"', '20.0 four 71 "b"'])
        with pytest.raises(ParseError) as excinfo:
            load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert excinfo.value.row == 2
        assert excinfo.value.column == 'cylinders'
        assert 'four' in str(excinfo.value)

    def test_extra_token_in_later_row(self, write_table):
        path = write_table(['18.0 8 70 "a"', '20.0 4 71 "b"', '22.0 4 72 "c" extra'])
        with pytest.raises(ParseError) as excinfo:
            load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert excinfo.value.row == 3

    def test_backslash_kept_in_text_token(self, write_table):
        """Backslashes are ordinary characters, not escapes."""
        path = write_table([r'18.0 8 70 "a\b"', r'20.0 4 71 c:\d'])
        df = load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert df['name'].tolist() == ['a\\b', 'c:\\d']

    def test_invalid_utf8_reports_row(self, tmp_path):
        """Undecodable bytes raise ParseError rather than a decode error."""
        path = tmp_path / 'latin1.data'
        path.write_bytes(b'18.0 8 70 "a"\n20.0 4 71 "caf\xe9"\n')
        with pytest.raises(ParseError) as excinfo:
            load_table(str(path), COLUMNS, numeric_columns=NUMERIC)
        assert excinfo.value.row == 2

    def test_text_columns_accept_any_token(self, write_table):
        path = write_table(['18.0 8 70 12345'])
        df = load_table(path, COLUMNS, numeric_columns=NUMERIC)
        assert df['name'].iloc[0] == '12345'

    def test_unterminated_quote(self, write_table):
        path = write_table(['18.0 8 70 "open quote'])
        with pytest.raises(ParseError):
            load_table(path, COLUMNS, numeric_columns=NUMERIC)

    def test_missing_tokens(self, write_table):
        """Declared missing tokens become NaN, or drop the row."""
        lines = ['18.0 8 70 "a"', '? 4 71 "b"', '22.0 4 72 "c"']

        df = load_table(write_table(lines), COLUMNS, numeric_columns=NUMERIC,
                        missing_values=['?'])
        assert len(df) == 3
        assert np.isnan(df['mpg'].iloc[1])

        df = load_table(write_table(lines, 'dropped.data'), COLUMNS,
                        numeric_columns=NUMERIC, missing_values=['?'], drop_missing=True)
        assert df['name'].tolist() == ['a', 'c']

    def test_missing_token_without_declaration(self, write_table):
        path = write_table(['? 4 71 "b"'])
        with pytest.raises(ParseError):
            load_table(path, COLUMNS, numeric_columns=NUMERIC)

    def test_unknown_numeric_column(self, write_table):
        path = write_table(['18.0 8 70 "a"'])
        with pytest.raises(ParseError):
            load_table(path, COLUMNS, numeric_columns=['mpg', 'torque'])

    def test_sample_file(self, sample_path):
        """The bundled Auto-MPG excerpt loads with one incomplete row dropped."""
        from utils.config import AnalysisConfig
        cfg = AnalysisConfig()
        df = load_table(sample_path, cfg.column_names, numeric_columns=cfg.numeric_columns,
                        id_columns=cfg.id_columns, missing_values=cfg.missing_values,
                        drop_missing=True)

        assert len(df) == 41
        assert 'ford pinto 71' not in df.index
        assert df.loc['chevrolet chevelle malibu 70', 'weight'] == 3504.0


class TestDescriptives:
    """Tests for the variable view and descriptive statistics."""

    def test_variable_metadata(self):
        df = pd.DataFrame({
            'mpg': np.linspace(10, 40, 30),
            'origin': [1.0, 2.0, 3.0] * 10,
            'name': ['car'] * 30
        })
        meta = get_variable_metadata(df).set_index('Name')

        assert meta.loc['mpg', 'Measure'] == 'Scale'
        assert meta.loc['origin', 'Measure'] == 'Nominal/Ordinal'
        assert meta.loc['name', 'Measure'] == 'Nominal'
        assert meta.loc['origin', 'Unique'] == 3

    def test_describe_quantitative(self, cars_table):
        desc = describe_quantitative(cars_table, ['mpg', 'weight'])

        assert list(desc.index) == ['mpg', 'weight']
        assert {'mean', 'std', 'skewness', 'kurtosis'}.issubset(desc.columns)
        assert np.isclose(desc.loc['mpg', 'mean'], cars_table['mpg'].mean())
