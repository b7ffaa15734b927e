"""Index naming for per-test Elasticsearch indexes."""

MAX_INDEX_NAME_LENGTH = 48


def derive_index_name(raw_name: str) -> str:
    """Derive an index name from a test name.

    The name is lower-cased and, when longer than 48 characters, cut down to
    its trailing 48 characters. Test names tend to carry their distinguishing
    part at the end, so the common prefix is the part that gets dropped.

    Args:
        raw_name: Test name, e.g. `request.node.name`.

    Returns:
        Lower-cased name of at most 48 characters.

    Example:
        ```python
        derive_index_name("MyTest")  # "mytest"
        ```
    """
    result = raw_name.lower()
    if len(result) <= MAX_INDEX_NAME_LENGTH:
        return result
    return result[-MAX_INDEX_NAME_LENGTH:]
