"""System catalog queries used by the SQL adapters.

Each query returns rows whose labels match the keyword names consumed by the
adapters, so ``row._mapping`` can be read without positional indexing.
"""
from sqlalchemy import bindparam, text

POSTGRES_COLUMNS = """
SELECT
    n.nspname AS table_schema,
    c.relname AS table_name,
    a.attname AS column_name,
    pg_catalog.format_type(a.atttypid, a.atttypmod) AS data_type,
    NOT a.attnotnull AS is_nullable,
    pg_catalog.pg_get_expr(d.adbin, d.adrelid) AS column_default,
    CASE a.attgenerated WHEN 's' THEN 'STORED' ELSE NULL END AS generated_type,
    CASE a.attidentity WHEN 'a' THEN 'ALWAYS' WHEN 'd' THEN 'BY DEFAULT' ELSE NULL END AS identity_generation
FROM pg_catalog.pg_attribute a
JOIN pg_catalog.pg_class c ON c.oid = a.attrelid
JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
LEFT JOIN pg_catalog.pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
WHERE c.relkind IN ('r', 'p')
  AND a.attnum > 0
  AND NOT a.attisdropped
  AND n.nspname NOT IN ('pg_catalog', 'information_schema')
  AND n.nspname NOT LIKE 'pg_toast%'
  AND n.nspname NOT LIKE 'pg_temp%'
  {table_filter}
ORDER BY n.nspname, c.relname, a.attnum
"""

POSTGRES_CONSTRAINTS = """
SELECT
    con.conname AS constraint_name,
    con.contype AS constraint_type,
    sn.nspname AS schema_name,
    st.relname AS table_name,
    ARRAY(
        SELECT CAST(a.attname AS text)
        FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
        ORDER BY k.ord
    ) AS constraint_columns,
    ARRAY(
        SELECT a.attnotnull
        FROM unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
        ORDER BY k.ord
    ) AS not_nullable,
    fn.nspname AS foreign_schema_name,
    ft.relname AS foreign_table_name,
    ARRAY(
        SELECT CAST(a.attname AS text)
        FROM unnest(con.confkey) WITH ORDINALITY AS k(attnum, ord)
        JOIN pg_catalog.pg_attribute a ON a.attrelid = con.confrelid AND a.attnum = k.attnum
        ORDER BY k.ord
    ) AS foreign_column_names,
    pg_catalog.pg_get_constraintdef(con.oid) AS constraint_definition
FROM pg_catalog.pg_constraint con
JOIN pg_catalog.pg_class st ON st.oid = con.conrelid
JOIN pg_catalog.pg_namespace sn ON sn.oid = st.relnamespace
LEFT JOIN pg_catalog.pg_class ft ON ft.oid = con.confrelid
LEFT JOIN pg_catalog.pg_namespace fn ON fn.oid = ft.relnamespace
WHERE con.contype IN {constraint_types}
  {scope_filter}
ORDER BY sn.nspname, st.relname, con.conname
"""

MYSQL_COLUMNS = """
SELECT
    c.TABLE_SCHEMA AS table_schema,
    c.TABLE_NAME AS table_name,
    c.COLUMN_NAME AS column_name,
    c.COLUMN_TYPE AS data_type,
    c.IS_NULLABLE = 'YES' AS is_nullable,
    c.COLUMN_DEFAULT AS column_default,
    CASE
        WHEN c.EXTRA LIKE '%STORED GENERATED%' THEN 'STORED'
        WHEN c.EXTRA LIKE '%VIRTUAL GENERATED%' THEN 'VIRTUAL'
        ELSE NULL
    END AS generated_type
FROM information_schema.COLUMNS c
JOIN information_schema.TABLES t
    ON t.TABLE_SCHEMA = c.TABLE_SCHEMA AND t.TABLE_NAME = c.TABLE_NAME
WHERE t.TABLE_TYPE = 'BASE TABLE'
  AND c.TABLE_SCHEMA NOT IN ('mysql', 'performance_schema', 'sys', 'information_schema')
ORDER BY c.TABLE_SCHEMA, c.TABLE_NAME, c.ORDINAL_POSITION
"""

# One row per constrained column; grouped into constraints by the adapter.
MYSQL_CONSTRAINTS = """
SELECT
    kcu.CONSTRAINT_NAME AS constraint_name,
    tc.CONSTRAINT_TYPE AS constraint_type,
    kcu.TABLE_SCHEMA AS schema_name,
    kcu.TABLE_NAME AS table_name,
    kcu.COLUMN_NAME AS column_name,
    c.IS_NULLABLE = 'NO' AS not_nullable,
    kcu.REFERENCED_TABLE_SCHEMA AS foreign_schema_name,
    kcu.REFERENCED_TABLE_NAME AS foreign_table_name,
    kcu.REFERENCED_COLUMN_NAME AS foreign_column_name
FROM information_schema.KEY_COLUMN_USAGE kcu
JOIN information_schema.TABLE_CONSTRAINTS tc
    ON tc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
    AND tc.TABLE_NAME = kcu.TABLE_NAME
    AND tc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
JOIN information_schema.COLUMNS c
    ON c.TABLE_SCHEMA = kcu.TABLE_SCHEMA
    AND c.TABLE_NAME = kcu.TABLE_NAME
    AND c.COLUMN_NAME = kcu.COLUMN_NAME
WHERE kcu.TABLE_SCHEMA IN :schemas
  AND tc.CONSTRAINT_TYPE IN ('PRIMARY KEY', 'UNIQUE', 'FOREIGN KEY')
ORDER BY kcu.TABLE_SCHEMA, kcu.TABLE_NAME, kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
"""


def postgres_columns_query():
    return text(POSTGRES_COLUMNS.format(table_filter=""))


def postgres_table_columns_query():
    return text(
        POSTGRES_COLUMNS.format(table_filter="AND n.nspname = :schema AND c.relname = :table")
    )


def postgres_constraints_query():
    """Key constraints (primary, unique, foreign) for a set of schemas."""
    return text(
        POSTGRES_CONSTRAINTS.format(
            constraint_types="('f', 'p', 'u')",
            scope_filter="AND sn.nspname IN :schemas",
        )
    ).bindparams(bindparam("schemas", expanding=True))


def postgres_table_constraints_query():
    """All constraint definitions of one table, for DDL synthesis."""
    return text(
        POSTGRES_CONSTRAINTS.format(
            constraint_types="('p', 'u', 'f', 'c')",
            scope_filter="AND sn.nspname = :schema AND st.relname = :table",
        )
    )


def mysql_columns_query():
    return text(MYSQL_COLUMNS)


def mysql_constraints_query():
    return text(MYSQL_CONSTRAINTS).bindparams(bindparam("schemas", expanding=True))
