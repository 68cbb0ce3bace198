"""Extract tables, columns and foreign keys from SQL DDL.

Only the parts of the grammar that describe structure are understood:
``CREATE TABLE`` with its column list, primary-key markers and
``REFERENCES``/``FOREIGN KEY`` clauses, plus ``ALTER TABLE ... ADD FOREIGN
KEY``. Every other statement is skipped. A table declaration that cannot be
read is reported as a ``ParseWarning`` and left out; the rest of the file is
still parsed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import re
from typing import Union

import sqlparse

from ..core.exceptions import ParseWarning, SchemaParseError
from .models import ColumnInfo, ForeignKeyInfo, TableInfo

logger = logging.getLogger(__name__)

_IDENT = r'(?:"[^"]+"|`[^`]+`|\[[^\]]+\]|[A-Za-z_][\w$]*)'
_QUALIFIED = rf"{_IDENT}(?:\s*\.\s*{_IDENT})*"

_CREATE_TABLE_RE = re.compile(
    r"^CREATE\s+(?:OR\s+REPLACE\s+)?(?:(?:GLOBAL|LOCAL)\s+)?(?:TEMP(?:ORARY)?\s+|UNLOGGED\s+)?"
    rf"TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?(?P<name>{_QUALIFIED})\s*(?P<rest>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_ALTER_TABLE_RE = re.compile(
    rf"^ALTER\s+TABLE\s+(?:IF\s+EXISTS\s+)?(?:ONLY\s+)?(?P<name>{_QUALIFIED})\s+(?P<rest>.*)$",
    re.IGNORECASE | re.DOTALL,
)
_CONSTRAINT_NAME_RE = re.compile(rf"^CONSTRAINT\s+{_IDENT}\s*", re.IGNORECASE)
_PRIMARY_KEY_RE = re.compile(r"^PRIMARY\s+KEY\b", re.IGNORECASE)
_FOREIGN_KEY_RE = re.compile(r"^FOREIGN\s+KEY\b", re.IGNORECASE)
_ADD_FOREIGN_KEY_RE = re.compile(rf"^ADD\s+(?:CONSTRAINT\s+{_IDENT}\s+)?(?=FOREIGN\s+KEY\b)", re.IGNORECASE)
_SKIPPED_CONSTRAINT_RE = re.compile(
    rf"^(?:(?:UNIQUE|CHECK|EXCLUDE|FULLTEXT|SPATIAL)\b|(?:KEY|INDEX)\s*(?:{_IDENT}\s+)?\()",
    re.IGNORECASE,
)
_COLUMN_NAME_RE = re.compile(rf"^(?P<name>{_IDENT})\s*(?P<rest>.*)$", re.DOTALL)
_COLUMN_OPTION_RE = re.compile(
    r"\b(?:CONSTRAINT|PRIMARY|REFERENCES|NOT|NULL|DEFAULT|UNIQUE|CHECK|COLLATE|GENERATED"
    r"|AUTO_INCREMENT|AUTOINCREMENT|IDENTITY|COMMENT)\b",
    re.IGNORECASE,
)
_INLINE_REFERENCES_RE = re.compile(
    rf"\bREFERENCES\s+(?P<table>{_QUALIFIED})\s*(?:\(\s*(?P<column>{_IDENT})\s*\))?",
    re.IGNORECASE,
)
_REFERENCES_CLAUSE_RE = re.compile(rf"^REFERENCES\s+(?P<table>{_QUALIFIED})\s*(?P<rest>.*)$", re.IGNORECASE | re.DOTALL)
_STRING_LITERAL_RE = re.compile(r"'(?:[^']|'')*'")

_OPENERS = {"(": ")"}
_QUOTES = {"'": "'", '"': '"', "`": "`", "[": "]"}


class _StatementError(Exception):
    """A statement was recognized but could not be read."""


# --- Recognized statement shapes ---

@dataclass(frozen=True)
class ColumnDeclaration:
    name: str
    declared_type: str
    is_primary_key: bool = False
    references: tuple[str, str | None] | None = None


@dataclass(frozen=True)
class PrimaryKeyDeclaration:
    columns: tuple[str, ...]


@dataclass(frozen=True)
class ForeignKeyDeclaration:
    columns: tuple[str, ...]
    references_table: str
    references_columns: tuple[str, ...] = ()


@dataclass(frozen=True)
class TableDeclaration:
    name: str
    columns: tuple[ColumnDeclaration, ...]
    constraints: tuple[Union[PrimaryKeyDeclaration, ForeignKeyDeclaration], ...] = ()


@dataclass(frozen=True)
class AlterTableDeclaration:
    table: str
    foreign_keys: tuple[ForeignKeyDeclaration, ...]


Declaration = Union[TableDeclaration, AlterTableDeclaration]


@dataclass
class ParsedSchema:
    tables: list[TableInfo] = field(default_factory=list)
    foreign_keys: list[ForeignKeyInfo] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


# --- Lexical helpers ---

def unquote_identifier(raw: str) -> str:
    cleaned = raw.strip()
    if len(cleaned) >= 2 and cleaned[0] in _QUOTES and cleaned[-1] == _QUOTES[cleaned[0]]:
        return cleaned[1:-1]
    return cleaned


def normalize_table_name(raw: str) -> str:
    """``"Public"."Orders"`` -> ``orders``: last qualifier part, unquoted, lower-cased."""
    parts = _split_top_level(raw, ".")
    return unquote_identifier(parts[-1]).lower()


def _scan(text: str):
    """Yield ``(index, char, depth)`` for characters outside quoted sections."""
    depth = 0
    closing_quote: str | None = None
    for index, char in enumerate(text):
        if closing_quote is not None:
            if char == closing_quote:
                closing_quote = None
            continue
        if char in _QUOTES:
            closing_quote = _QUOTES[char]
            continue
        if char in _OPENERS:
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise _StatementError("unbalanced parentheses")
        yield index, char, depth
    if closing_quote is not None:
        raise _StatementError("unterminated quoted section")
    if depth != 0:
        raise _StatementError("unbalanced parentheses")


def _split_top_level(text: str, separator: str = ",") -> list[str]:
    parts: list[str] = []
    start = 0
    for index, char, depth in _scan(text):
        if char == separator and depth == 0:
            parts.append(text[start:index].strip())
            start = index + 1
    parts.append(text[start:].strip())
    return parts


def _leading_parenthesized(text: str) -> tuple[str, str]:
    """Split ``"(a, b) rest"`` into ``("a, b", "rest")``."""
    stripped = text.lstrip()
    if not stripped.startswith("("):
        raise _StatementError("expected a parenthesized list")
    for index, char, depth in _scan(stripped):
        if char == ")" and depth == 0:
            return stripped[1:index], stripped[index + 1:].strip()
    raise _StatementError("unbalanced parentheses")


def _identifier_list(text: str) -> tuple[str, ...]:
    names = tuple(unquote_identifier(part) for part in _split_top_level(text))
    if not names or any(not name for name in names):
        raise _StatementError("empty column list")
    return names


def _preview(statement: str, width: int = 60) -> str:
    flat = " ".join(statement.split())
    return flat if len(flat) <= width else flat[: width - 3] + "..."


# --- Statement parsing ---

def _parse_references(text: str, columns: tuple[str, ...]) -> ForeignKeyDeclaration:
    match = _REFERENCES_CLAUSE_RE.match(text.strip())
    if not match:
        raise _StatementError("FOREIGN KEY without REFERENCES clause")
    referenced: tuple[str, ...] = ()
    rest = match.group("rest").lstrip()
    if rest.startswith("("):
        inner, _ = _leading_parenthesized(rest)
        referenced = _identifier_list(inner)
        if len(referenced) != len(columns):
            raise _StatementError(
                f"foreign key has {len(columns)} column(s) but references {len(referenced)}"
            )
    return ForeignKeyDeclaration(
        columns=columns,
        references_table=normalize_table_name(match.group("table")),
        references_columns=referenced,
    )


def _parse_foreign_key(element: str) -> ForeignKeyDeclaration:
    body = _FOREIGN_KEY_RE.sub("", element, count=1)
    inner, rest = _leading_parenthesized(body)
    return _parse_references(rest, _identifier_list(inner))


def _parse_column(element: str) -> ColumnDeclaration:
    match = _COLUMN_NAME_RE.match(element)
    if not match:
        raise _StatementError(f"cannot read column definition '{_preview(element, 30)}'")
    name = unquote_identifier(match.group("name"))
    options = _STRING_LITERAL_RE.sub("''", match.group("rest"))

    option = _COLUMN_OPTION_RE.search(options)
    declared_type = options[: option.start()] if option else options
    references = None
    ref_match = _INLINE_REFERENCES_RE.search(options)
    if ref_match:
        column = ref_match.group("column")
        references = (
            normalize_table_name(ref_match.group("table")),
            unquote_identifier(column) if column else None,
        )
    return ColumnDeclaration(
        name=name,
        declared_type=" ".join(declared_type.split()),
        is_primary_key=bool(re.search(r"\bPRIMARY\s+KEY\b", options, re.IGNORECASE)),
        references=references,
    )


def _parse_create_table(statement: str) -> TableDeclaration | None:
    match = _CREATE_TABLE_RE.match(statement)
    if not match:
        # CREATE INDEX / VIEW / FUNCTION ... are opaque
        return None
    name = normalize_table_name(match.group("name"))
    body, _ = _leading_parenthesized(match.group("rest"))

    columns: list[ColumnDeclaration] = []
    constraints: list[Union[PrimaryKeyDeclaration, ForeignKeyDeclaration]] = []
    for element in _split_top_level(body):
        if not element:
            raise _StatementError("empty column definition")
        named = _CONSTRAINT_NAME_RE.match(element)
        unnamed = element[named.end():] if named else element
        if _PRIMARY_KEY_RE.match(unnamed):
            inner, _ = _leading_parenthesized(_PRIMARY_KEY_RE.sub("", unnamed, count=1))
            constraints.append(PrimaryKeyDeclaration(columns=_identifier_list(inner)))
        elif _FOREIGN_KEY_RE.match(unnamed):
            constraints.append(_parse_foreign_key(unnamed))
        elif named or _SKIPPED_CONSTRAINT_RE.match(unnamed):
            continue
        else:
            columns.append(_parse_column(element))

    if not columns:
        raise _StatementError(f"table '{name}' declares no columns")
    return TableDeclaration(name=name, columns=tuple(columns), constraints=tuple(constraints))


def _parse_alter_table(statement: str) -> AlterTableDeclaration | None:
    match = _ALTER_TABLE_RE.match(statement)
    if not match:
        return None
    foreign_keys = []
    for action in _split_top_level(match.group("rest")):
        add_fk = _ADD_FOREIGN_KEY_RE.match(action)
        if add_fk:
            foreign_keys.append(_parse_foreign_key(action[add_fk.end():]))
    if not foreign_keys:
        return None
    return AlterTableDeclaration(table=normalize_table_name(match.group("name")), foreign_keys=tuple(foreign_keys))


def parse_statement(statement: str) -> Declaration | None:
    """Parse one statement; None when it is not a structural declaration."""
    parsed = sqlparse.parse(statement)
    if not parsed:
        return None
    stmt_type = (parsed[0].get_type() or "").upper()
    if stmt_type.startswith("CREATE"):
        return _parse_create_table(statement)
    if stmt_type == "ALTER":
        return _parse_alter_table(statement)
    return None


def _collect(declarations: list[Declaration]) -> ParsedSchema:
    result = ParsedSchema()
    for declaration in declarations:
        if isinstance(declaration, AlterTableDeclaration):
            for fk in declaration.foreign_keys:
                result.foreign_keys.extend(_foreign_key_infos(declaration.table, fk))
            continue

        pk_columns = {
            column.lower()
            for constraint in declaration.constraints
            if isinstance(constraint, PrimaryKeyDeclaration)
            for column in constraint.columns
        }
        result.tables.append(
            TableInfo(
                name=declaration.name,
                columns=tuple(
                    ColumnInfo(
                        name=column.name,
                        declared_type=column.declared_type,
                        is_primary_key=column.is_primary_key or column.name.lower() in pk_columns,
                    )
                    for column in declaration.columns
                ),
            )
        )
        for column in declaration.columns:
            if column.references:
                ref_table, ref_column = column.references
                result.foreign_keys.append(
                    ForeignKeyInfo(
                        table=declaration.name,
                        column=column.name,
                        references_table=ref_table,
                        references_column=ref_column,
                    )
                )
        for constraint in declaration.constraints:
            if isinstance(constraint, ForeignKeyDeclaration):
                result.foreign_keys.extend(_foreign_key_infos(declaration.name, constraint))
    return result


def _foreign_key_infos(table: str, fk: ForeignKeyDeclaration) -> list[ForeignKeyInfo]:
    referenced = fk.references_columns or (None,) * len(fk.columns)
    return [
        ForeignKeyInfo(table=table, column=column, references_table=fk.references_table, references_column=ref)
        for column, ref in zip(fk.columns, referenced)
    ]


def parse_schema(text: str) -> ParsedSchema:
    """Parse schema text into tables, raw foreign keys and warnings.

    Raises:
        SchemaParseError: If the text is empty or declares no table.
    """
    if not text or not text.strip():
        raise SchemaParseError("Schema is empty")

    declarations: list[Declaration] = []
    warnings: list[ParseWarning] = []
    for number, raw in enumerate(sqlparse.split(text), start=1):
        statement = sqlparse.format(raw, strip_comments=True).strip().rstrip(";").strip()
        if not statement:
            continue
        try:
            declaration = parse_statement(statement)
        except _StatementError as exc:
            warning = ParseWarning(f"Skipped statement {number} ({_preview(statement)}): {exc}")
            logger.warning(str(warning))
            warnings.append(warning)
            continue
        if declaration is not None:
            declarations.append(declaration)

    if not any(isinstance(item, TableDeclaration) for item in declarations):
        raise SchemaParseError("No CREATE TABLE statement found in schema")

    result = _collect(declarations)
    result.warnings = warnings
    logger.info(f"Parsed schema: {len(result.tables)} tables, {len(result.foreign_keys)} foreign keys")
    return result
