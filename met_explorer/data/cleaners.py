"""
Tabular helpers for normalized artwork records.

This module turns ArtworkRecord lists into pandas DataFrames and tidies them
for display summaries (deduplication, string cleanup).
"""
import pandas as pd

RECORD_COLUMNS = ['id', 'title', 'artist', 'department', 'image_url', 'culture', 'date', 'medium']

STRING_FIELDS = ['title', 'artist', 'department', 'image_url', 'culture', 'date', 'medium']


def records_to_dataframe(records):
    """
    Build a DataFrame with one row per record.

    The columns are fixed, so an empty result still yields a frame with the
    expected shape.

    Args:
        records (list): ArtworkRecord instances

    Returns:
        pandas.DataFrame: One row per record, columns as RECORD_COLUMNS
    """
    rows = [record.model_dump() for record in records]
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)


def clean_records_frame(df):
    """
    Drop duplicate IDs and normalize string fields.

    - Keeps the first occurrence of each id
    - Trims whitespace
    - Turns empty strings into None

    Args:
        df (pandas.DataFrame): Frame from records_to_dataframe()

    Returns:
        pandas.DataFrame: Cleaned copy of the frame
    """
    df = df.drop_duplicates(subset=['id'], keep='first').copy()

    for field in STRING_FIELDS:
        if field in df.columns:
            df[field] = df[field].apply(lambda x: x.strip() if isinstance(x, str) else x)
            df[field] = df[field].apply(lambda x: None if x == '' else x)

    return df.reset_index(drop=True)


def department_counts(df):
    """Number of records per department, largest first."""
    if df.empty:
        return pd.Series(dtype='int64', name='count')
    return df['department'].value_counts()
