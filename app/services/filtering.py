"""Case-insensitive substring filtering of fetched records."""

from typing import Any, Iterable, Mapping, Sequence


def field_text(record: Mapping[str, Any], path: str) -> str:
    """
    Return the text stored at a dotted field path, or "" when it is absent.

    `"users.name"` reads the `name` of the embedded `users` relation. List
    values are joined with spaces; other non-text values are rendered with
    `str()`.
    """
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return ""
        value = value.get(part)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return " ".join(str(item) for item in value if item is not None)
    return str(value)


def matches(record: Mapping[str, Any], query: str, fields: Iterable[str]) -> bool:
    needle = query.casefold()
    return any(needle in field_text(record, path).casefold() for path in fields)


def filter_records(
    records: Sequence[Mapping[str, Any]], query: str, fields: Sequence[str]
) -> list:
    """
    Select the records whose designated fields contain `query`, ignoring case.

    The input is never modified and the relative order of records is kept. An
    empty query selects every record.

    Parameters:
        records: The fetched list.
        query: Free text typed by the operator.
        fields: Dotted paths of the text fields searched.

    Returns:
        list: A new list holding the matching records.
    """
    if not query:
        return list(records)
    return [record for record in records if matches(record, query, fields)]
