"""Leading-keyword check restricting which statements a tool may run.

This is a syntactic gate only. Values always reach the server as bound
parameters, never interpolated into the statement.
"""

from collections.abc import Collection

from mysql_mcp.db.errors import ClassifiedError, ErrorKind

READ_ONLY = ("SELECT",)
MUTATING = ("INSERT", "UPDATE", "DELETE")


def leading_keyword(sql: str) -> str:
    """First whitespace-delimited token of the statement, uppercased."""
    parts = sql.strip().split(None, 1)
    return parts[0].upper() if parts else ""


def classify(sql: str, allowed: Collection[str]) -> str:
    """Return the statement's leading keyword if ``allowed`` contains it.

    Raises:
        ClassifiedError: ``InvalidStatement`` otherwise.
    """
    keyword = leading_keyword(sql)
    if keyword not in allowed:
        raise ClassifiedError(
            ErrorKind.INVALID_STATEMENT,
            f"Invalid SQL type. Allowed: {', '.join(allowed)}",
        )
    return keyword


def check_read_only(sql: str) -> str:
    return classify(sql, READ_ONLY)


def check_mutating(sql: str) -> str:
    """Gate for the ``execute`` tool; SELECT is pointed at ``query``."""
    if leading_keyword(sql) == "SELECT":
        raise ClassifiedError(
            ErrorKind.INVALID_STATEMENT,
            "SELECT statements are not allowed here; use the query tool instead",
        )
    return classify(sql, MUTATING)
