"""Data loading utilities for the Auto-MPG analysis."""

import io
import logging
import re
from pathlib import Path
from typing import Iterable, Optional, Sequence

import numpy as np
import pandas as pd
from scipy import stats

from utils.errors import ParseError

logger = logging.getLogger(__name__)


def _format_id_part(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _read_text(path) -> str:
    """Decode the file as UTF-8, reporting the line of an undecodable byte."""
    data = Path(path).read_bytes()
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as e:
        row = data[:e.start].count(b'\n') + 1
        raise ParseError("File is not valid UTF-8", row=row) from e


def _read_tokens(text: str, n_columns: int) -> pd.DataFrame:
    """
    Split the text into a frame of string tokens, one row per file line.

    One column beyond ``n_columns`` is declared so that a row carrying an
    extra token fills it; rows with too few tokens leave NaN in the last
    declared column. Blank lines are kept as all-NaN rows so that row
    positions match line numbers.
    """
    try:
        frame = pd.read_csv(
            io.StringIO(text),
            sep=r'\s+',
            header=None,
            names=list(range(n_columns + 1)),
            quotechar='"',
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=False
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(columns=range(n_columns + 1), dtype=object)
    except pd.errors.ParserError as e:
        match = re.search(r'line (\d+)', str(e))
        raise ParseError(
            f"Expected {n_columns} columns: {e}",
            row=int(match.group(1)) if match else None
        ) from e

    # The first line holding more tokens than names turns into an implicit index
    if not isinstance(frame.index, pd.RangeIndex):
        raise ParseError(f"Expected {n_columns} columns, found more", row=1)
    # Blank and whitespace-only lines may yield empty tokens
    return frame.mask(frame == '')


def load_table(path, column_names: Sequence[str],
               numeric_columns: Optional[Iterable[str]] = None,
               id_columns: Optional[Sequence[str]] = None,
               missing_values: Optional[Iterable[str]] = None,
               drop_missing: bool = False) -> pd.DataFrame:
    """
    Load a whitespace-delimited table with no header row.

    Args:
        path: Path to the data file
        column_names: Ordered column names, one per token in every row
        numeric_columns: Columns coerced to float (others stay as strings)
        id_columns: Columns concatenated into the row identity (index)
        missing_values: Tokens read as NaN in numeric columns (e.g. '?')
        drop_missing: Drop rows holding a missing numeric value

    Returns:
        DataFrame with one row per record

    Raises:
        ParseError: undecodable file, wrong token count in a row, or a
            numeric column holding a token that is not a number
    """
    column_names = list(column_names)
    n_columns = len(column_names)
    numeric_columns = set(numeric_columns or [])
    missing_values = set(missing_values or [])

    unknown = numeric_columns.difference(column_names)
    if unknown:
        raise ParseError(f"Numeric columns not in column list: {sorted(unknown)}")

    frame = _read_tokens(_read_text(path), n_columns)

    blank = frame.isnull().all(axis=1).to_numpy()
    extra = frame[n_columns].notnull().to_numpy()
    short = frame[n_columns - 1].isnull().to_numpy() & ~blank
    bad_rows = np.flatnonzero(extra | short)
    if len(bad_rows):
        first = int(bad_rows[0])
        found = int(frame.iloc[first].notnull().sum())
        raise ParseError(
            f"Expected {n_columns} columns, found {'more' if extra[first] else found}",
            row=first + 1
        )

    line_numbers = [int(i) + 1 for i in np.flatnonzero(~blank)]
    df = frame.loc[~blank, list(range(n_columns))].reset_index(drop=True)
    df.columns = column_names

    for col in column_names:
        if col not in numeric_columns:
            continue
        raw = df[col]
        is_missing = raw.isin(missing_values)
        coerced = pd.to_numeric(raw.where(~is_missing), errors='coerce')
        bad = coerced.isnull() & ~is_missing
        if bad.any():
            first = int(np.flatnonzero(bad.to_numpy())[0])
            raise ParseError(
                f"Value '{raw.iloc[first]}' is not numeric",
                row=line_numbers[first],
                column=col
            )
        df[col] = coerced.astype(float)

    if drop_missing:
        incomplete = df.isnull().any(axis=1)
        if incomplete.any():
            logger.warning("Dropping %d rows with missing values", int(incomplete.sum()))
            df = df.loc[~incomplete].reset_index(drop=True)

    if id_columns:
        missing_ids = [c for c in id_columns if c not in column_names]
        if missing_ids:
            raise ParseError(f"Identifier columns not in column list: {missing_ids}")
        ids = [" ".join(_format_id_part(v) for v in row)
               for row in df[list(id_columns)].itertuples(index=False)]
        df.index = pd.Index(ids, dtype=object, name="id")
        duplicated = df.index.duplicated()
        if duplicated.any():
            logger.warning(
                "%d row identities are not unique after concatenating %s",
                int(duplicated.sum()), list(id_columns)
            )

    logger.info("Loaded %d rows x %d columns from %s", len(df), len(df.columns), path)
    return df


def get_variable_metadata(df):
    """
    Generate a 'Variable View' dataframe with column metadata.

    Args:
        df: pandas DataFrame

    Returns:
        DataFrame with columns: Name, Type, Missing, Unique, Measure
    """
    data = []

    for col in df.columns:
        missing_count = int(df[col].isnull().sum())
        unique_count = int(df[col].nunique())

        # Measure heuristic
        if pd.api.types.is_numeric_dtype(df[col]):
            if unique_count < 15:
                measure = "Nominal/Ordinal"
            else:
                measure = "Scale"
        else:
            measure = "Nominal"

        data.append([col, str(df[col].dtype), missing_count, unique_count, measure])

    return pd.DataFrame(data, columns=["Name", "Type", "Missing", "Unique", "Measure"])


def describe_quantitative(df, columns):
    """
    Descriptive statistics for the chosen numeric columns.

    Returns:
        DataFrame indexed by column with count, mean, std, min, quartiles,
        max, skewness and kurtosis
    """
    desc = df[list(columns)].describe().T
    desc['skewness'] = [stats.skew(df[c].dropna()) for c in columns]
    desc['kurtosis'] = [stats.kurtosis(df[c].dropna()) for c in columns]
    return desc
