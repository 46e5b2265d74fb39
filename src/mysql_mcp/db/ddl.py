"""DDL statement builders for the schema tools."""

from pydantic import BaseModel, ConfigDict, Field


class FieldDefinition(BaseModel):
    """A column in ``create_table`` / ``add_column``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, description="Column name")
    type: str = Field(min_length=1, description="Column type, e.g. INT or VARCHAR")
    length: int | None = Field(default=None, gt=0, description="Type length, e.g. 255")
    nullable: bool | None = Field(default=None, description="False adds NOT NULL")
    default: str | int | float | None = Field(
        default=None,
        description="Default value; an explicit null produces DEFAULT NULL",
    )
    auto_increment: bool = Field(default=False, alias="autoIncrement")
    primary: bool = Field(default=False, description="Inline PRIMARY KEY")


class IndexDefinition(BaseModel):
    """A secondary index declared with ``create_table``."""

    name: str = Field(min_length=1)
    columns: list[str] = Field(min_length=1)
    unique: bool = False


def quote_identifier(name: str) -> str:
    """Backtick-quote an identifier, doubling embedded backticks."""
    return "`" + name.replace("`", "``") + "`"


def quote_literal(value: str | int | float) -> str:
    text = str(value).replace("\\", "\\\\").replace("'", "''")
    return f"'{text}'"


def column_definition(field: FieldDefinition, *, allow_keys: bool = True) -> str:
    """Render one column clause: name, type, length and modifiers."""
    sql = f"{quote_identifier(field.name)} {field.type.upper()}"
    if field.length:
        sql += f"({field.length})"
    if field.nullable is False:
        sql += " NOT NULL"
    if "default" in field.model_fields_set:
        sql += " DEFAULT " + ("NULL" if field.default is None else quote_literal(field.default))
    if allow_keys:
        if field.auto_increment:
            sql += " AUTO_INCREMENT"
        if field.primary:
            sql += " PRIMARY KEY"
    return sql


def index_definition(index: IndexDefinition) -> str:
    kind = "UNIQUE INDEX" if index.unique else "INDEX"
    columns = ", ".join(quote_identifier(c) for c in index.columns)
    return f"{kind} {quote_identifier(index.name)} ({columns})"


def build_create_table(
    table: str,
    fields: list[FieldDefinition],
    indexes: list[IndexDefinition] | None = None,
) -> str:
    """Build a ``CREATE TABLE`` statement.

    Raises:
        ValueError: If no fields are given.
    """
    if not fields:
        raise ValueError("At least one field is required")
    clauses = [column_definition(f) for f in fields]
    clauses.extend(index_definition(i) for i in indexes or [])
    body = ",\n  ".join(clauses)
    return f"CREATE TABLE {quote_identifier(table)} (\n  {body}\n)"


def build_add_column(table: str, field: FieldDefinition) -> str:
    """Build an ``ALTER TABLE ... ADD COLUMN`` statement."""
    return (
        f"ALTER TABLE {quote_identifier(table)} "
        f"ADD COLUMN {column_definition(field, allow_keys=False)}"
    )
