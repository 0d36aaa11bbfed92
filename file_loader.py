"""
Helper module to read the KPI CSV text from either disk or Streamlit uploaded buffers.
The pipeline itself never touches files; this is the host app's I/O edge.
"""
import os
import streamlit as st


def get_file_source(file_key: str, file_path: str):
    """
    Returns a file-like object or path for reading a CSV.

    Priority:
    1. If uploaded file exists in session_state.uploaded_files, use that buffer
    2. Otherwise, use the file_path on disk

    Args:
        file_key: key in st.session_state.uploaded_files (e.g., 'kpis')
        file_path: fallback file path

    Returns:
        tuple: (source, is_uploaded) where source is file-like or path, is_uploaded is bool
    """
    # st.session_state is unavailable when running outside Streamlit
    try:
        uploaded_files = st.session_state.get('uploaded_files', {})
    except (AttributeError, RuntimeError):
        uploaded_files = {}

    if file_key in uploaded_files:
        return uploaded_files[file_key], True
    elif file_path and os.path.isfile(os.path.abspath(file_path)):
        return file_path, False
    else:
        return None, False


def decode_csv_bytes(raw: bytes) -> str:
    """Decode CSV bytes, dropping a UTF-8 byte order mark written by Excel."""
    return raw.decode('utf-8-sig')


def read_csv_text(file_key: str, file_path: str) -> str:
    """
    Read the raw CSV text from an uploaded buffer or from disk.

    Args:
        file_key: key in st.session_state.uploaded_files
        file_path: fallback file path

    Returns:
        str with the full CSV contents

    Raises:
        FileNotFoundError when neither source exists
    """
    source, is_uploaded = get_file_source(file_key, file_path)

    if source is None:
        raise FileNotFoundError(f"File not found: {file_path} (and no uploaded file)")

    if is_uploaded:
        if hasattr(source, 'getvalue'):
            raw = source.getvalue()
        else:
            source.seek(0)
            raw = source.read()
        return decode_csv_bytes(raw) if isinstance(raw, bytes) else raw

    with open(source, 'rb') as fh:
        return decode_csv_bytes(fh.read())
