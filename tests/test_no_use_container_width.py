import os
import fnmatch

DEPRECATED_ARG = 'use_container' + '_width'


def test_no_use_container_width_exists():
    """
    Fail if any Python source contains the deprecated Streamlit arg `use_container_width`.

    This prevents regressions where old page code is reintroduced. The test searches
    the repository, excluding common binary and virtualenv directories.
    """
    repo_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

    exclude_dirs = {'.git', '__pycache__', '.venv', 'venv', 'env', '.pytest_cache'}
    this_file = os.path.abspath(__file__)
    matches = []

    for base, dirs, files in os.walk(repo_root):
        # Skip excluded directories
        dirs[:] = [d for d in dirs if d not in exclude_dirs]

        for filename in files:
            if not fnmatch.fnmatch(filename, '*.py'):
                continue

            file_path = os.path.join(base, filename)
            if os.path.abspath(file_path) == this_file:
                continue
            try:
                with open(file_path, 'r', encoding='utf-8') as fh:
                    for i, line in enumerate(fh, start=1):
                        if DEPRECATED_ARG in line:
                            matches.append((file_path, i, line.strip()))
            except (UnicodeDecodeError, PermissionError):
                # Skip files that can't be read as text
                continue

    if matches:
        lines = [f"{p}:{ln}: {code}" for p, ln, code in matches]
        found = '\n'.join(lines)
        raise AssertionError(
            "Deprecated Streamlit argument `use_container_width` found in repository.\n" +
            "Please replace with width='stretch' or width='content' as appropriate.\n\n" +
            found
        )
