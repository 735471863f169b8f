"""Resource addresses.

    db://schemas
    db://schemas/{schema}/tables
    db://schemas/{schema}/tables/{table}
    db://schemas/{schema}/tables/{table}/indexes
    db://schemas/{schema}/procedures
    db://schemas/{schema}/procedures/{procedure}
"""

SCHEME = "db://"

SCHEMAS_TEMPLATE = f"{SCHEME}schemas"
TABLES_TEMPLATE = f"{SCHEME}schemas/{{schema_name}}/tables"
TABLE_TEMPLATE = f"{SCHEME}schemas/{{schema_name}}/tables/{{table_name}}"
INDEXES_TEMPLATE = f"{SCHEME}schemas/{{schema_name}}/tables/{{table_name}}/indexes"
PROCEDURES_TEMPLATE = f"{SCHEME}schemas/{{schema_name}}/procedures"
PROCEDURE_TEMPLATE = f"{SCHEME}schemas/{{schema_name}}/procedures/{{procedure_name}}"


def schemas_uri() -> str:
    return SCHEMAS_TEMPLATE


def tables_uri(schema: str) -> str:
    return TABLES_TEMPLATE.format(schema_name=schema)


def table_uri(schema: str, table: str) -> str:
    return TABLE_TEMPLATE.format(schema_name=schema, table_name=table)


def indexes_uri(schema: str, table: str) -> str:
    return INDEXES_TEMPLATE.format(schema_name=schema, table_name=table)


def procedures_uri(schema: str) -> str:
    return PROCEDURES_TEMPLATE.format(schema_name=schema)


def procedure_uri(schema: str, procedure: str) -> str:
    return PROCEDURE_TEMPLATE.format(schema_name=schema, procedure_name=procedure)
