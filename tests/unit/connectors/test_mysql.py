"""Tests for the MySQL and MariaDB connectors."""

from unittest.mock import AsyncMock, patch

import aiomysql
import pytest

from dbhub.core.exceptions import ErrorCodes, ReadOnlyViolationError, RoutineNotFoundError
from dbhub.database.connectors.mariadb import MariaDBConnector
from dbhub.database.connectors.mysql import MySQLConnector


def _connector(dsn="mysql://root:pw@db:3306/shop"):
    return MySQLConnector.from_dsn(dsn)


class TestMySQLPool:
    """Test pool creation and error mapping."""

    @pytest.mark.asyncio
    async def test_create_pool_arguments(self):
        """Test aiomysql receives the parsed parameters with autocommit."""
        connector = _connector("mysql://root:pw@db:3307/shop?sslmode=require")

        with patch("aiomysql.create_pool", new=AsyncMock(return_value="pool")) as create_pool:
            assert await connector._create_pool() == "pool"

        kwargs = create_pool.call_args.kwargs
        assert kwargs["host"] == "db"
        assert kwargs["port"] == 3307
        assert kwargs["user"] == "root"
        assert kwargs["password"] == "pw"
        assert kwargs["db"] == "shop"
        assert kwargs["autocommit"] is True
        assert kwargs["ssl"] is not None

    def test_no_ssl_by_default(self):
        """Test SSL stays off without sslmode."""
        assert _connector()._ssl_context() is None

    def test_access_denied_mapped(self):
        """Test error 1045 maps to AUTH_FAILED."""
        error = aiomysql.OperationalError(1045, "Access denied for user 'root'")

        assert _connector()._connection_error(error).code == ErrorCodes.AUTH_FAILED

    @pytest.mark.asyncio
    async def test_disconnect_closes_pool(self, responder, fake_pools, connect_with_pool):
        """Test the pool is closed and awaited."""
        pool = fake_pools["aiomysql"](responder)
        connector = await connect_with_pool(_connector(), pool)

        await connector.disconnect()

        assert pool.closed is True


class TestMySQLIntrospection:
    """Test catalog queries against a fake pool."""

    @pytest.mark.asyncio
    async def test_get_tables_uses_database_when_no_schema(
        self, responder, fake_pools, connect_with_pool
    ):
        """Test a missing schema filters on DATABASE()."""
        responder.add("from information_schema.tables", [{"table_name": "orders"}])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        assert await connector.get_tables() == ["orders"]

        sql, args = responder.calls[-1]
        assert "TABLE_SCHEMA = DATABASE()" in sql
        assert args == ()

    @pytest.mark.asyncio
    async def test_get_tables_with_schema(self, responder, fake_pools, connect_with_pool):
        """Test an explicit schema is passed as a parameter."""
        responder.add("from information_schema.tables", [])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        await connector.get_tables("inventory")

        assert responder.calls[-1][1] == ("inventory",)

    @pytest.mark.asyncio
    async def test_dict_cursor_used(self, responder, fake_pools, connect_with_pool):
        """Test catalog queries use DictCursor."""
        pool = fake_pools["aiomysql"](responder)
        connector = await connect_with_pool(_connector(), pool)
        seen = []
        original = pool._acquire

        def acquire():
            manager = original()

            class Recorder:
                async def __aenter__(self):
                    connection = await manager.__aenter__()
                    seen.append(connection)
                    return connection

                async def __aexit__(self, *exc):
                    return await manager.__aexit__(*exc)

            return Recorder()

        pool.acquire = acquire
        await connector.get_schemas()

        assert seen[0].cursor_classes == [aiomysql.DictCursor]

    @pytest.mark.asyncio
    async def test_table_exists(self, responder, fake_pools, connect_with_pool):
        """Test COUNT(*) is read as a boolean."""
        responder.add("count(*) as table_count", lambda sql, args: [
            {"table_count": 1 if args[-1] == "users" else 0}
        ])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        assert await connector.table_exists("users") is True
        assert await connector.table_exists("ghosts", "shop") is False

    @pytest.mark.asyncio
    async def test_get_table_schema(self, responder, fake_pools, connect_with_pool):
        """Test column rows are converted."""
        responder.add(
            "from information_schema.columns",
            [{"column_name": "id", "data_type": "int", "is_nullable": "NO", "column_default": None}],
        )
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        columns = await connector.get_table_schema("users", "shop")

        assert columns[0].to_dict() == {
            "column_name": "id",
            "data_type": "int",
            "is_nullable": False,
            "column_default": None,
        }

    @pytest.mark.asyncio
    async def test_get_table_indexes(self, responder, fake_pools, connect_with_pool):
        """Test NON_UNIQUE and PRIMARY are interpreted."""
        responder.add(
            "from information_schema.statistics",
            [
                {"index_name": "PRIMARY", "column_name": "id", "non_unique": 0, "seq_in_index": 1},
                {"index_name": "idx_email", "column_name": "email", "non_unique": "0", "seq_in_index": 1},
                {"index_name": "idx_name", "column_name": "last", "non_unique": 1, "seq_in_index": 2},
                {"index_name": "idx_name", "column_name": "first", "non_unique": 1, "seq_in_index": 1},
            ],
        )
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        indexes = {i.index_name: i for i in await connector.get_table_indexes("users", "shop")}

        assert indexes["PRIMARY"].is_primary is True
        assert indexes["PRIMARY"].is_unique is True
        assert indexes["idx_email"].is_unique is True
        assert indexes["idx_email"].is_primary is False
        assert indexes["idx_name"].is_unique is False
        assert indexes["idx_name"].column_names == ["first", "last"]


class TestMySQLProcedureDetail:
    """Test routine detail and the definition fallback chain."""

    @pytest.mark.asyncio
    async def test_procedure_with_definition(self, responder, fake_pools, connect_with_pool):
        """Test procedures carry no return type."""
        responder.add(
            "r.routine_name as procedure_name",
            [{
                "procedure_name": "restock",
                "procedure_type": "procedure",
                "routine_definition": "BEGIN UPDATE items SET qty = qty + 1; END",
                "return_type": None,
                "parameter_list": "item_id IN int",
            }],
        )
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        detail = await connector.get_stored_procedure_detail("restock", "shop")

        assert detail.procedure_type == "procedure"
        assert detail.parameter_list == "item_id IN int"
        assert detail.return_type is None
        assert detail.definition.startswith("BEGIN")

    @pytest.mark.asyncio
    async def test_function_definition_from_show_create(
        self, responder, fake_pools, connect_with_pool
    ):
        """Test a missing definition is read with SHOW CREATE FUNCTION."""
        responder.add(
            "r.routine_name as procedure_name",
            [{
                "procedure_name": "tax",
                "procedure_type": "function",
                "routine_definition": None,
                "return_type": "decimal(10,2)",
                "parameter_list": None,
            }],
        )
        responder.add("show create function", [{"Function": "tax", "Create Function": "CREATE FUNCTION tax() ..."}])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        detail = await connector.get_stored_procedure_detail("tax", "shop")

        assert detail.definition == "CREATE FUNCTION tax() ..."
        assert detail.return_type == "decimal(10,2)"
        assert detail.parameter_list == ""
        assert "SHOW CREATE FUNCTION `shop`.`tax`" in responder.executed()

    @pytest.mark.asyncio
    async def test_definition_falls_back_to_routine_body(
        self, responder, fake_pools, connect_with_pool
    ):
        """Test a failing SHOW CREATE falls through to INFORMATION_SCHEMA."""
        responder.add(
            "r.routine_name as procedure_name",
            [{
                "procedure_name": "restock",
                "procedure_type": "procedure",
                "routine_definition": "",
                "return_type": None,
                "parameter_list": "",
            }],
        )
        responder.add("show create procedure", aiomysql.OperationalError(1227, "Access denied"))
        responder.add("routine_body as routine_body", [{"routine_definition": None, "routine_body": "SQL"}])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        detail = await connector.get_stored_procedure_detail("restock", "shop")

        assert detail.definition == "SQL"

    @pytest.mark.asyncio
    async def test_not_found_uses_current_schema_wording(
        self, responder, fake_pools, connect_with_pool
    ):
        """Test the not-found message when no schema was given."""
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        with pytest.raises(RoutineNotFoundError) as exc_info:
            await connector.get_stored_procedure_detail("missing")

        assert exc_info.value.message == "Stored procedure 'missing' not found in current schema"


class TestMySQLExecution:
    """Test SQL execution on the MySQL connector."""

    @pytest.mark.asyncio
    async def test_non_row_statements_return_no_rows(self, responder, fake_pools, connect_with_pool):
        """Test statements without a result set add nothing to the result."""
        responder.add("insert into", None)
        responder.add("select last_insert_id()", [{"id": 7}])
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        result = await connector.execute_sql("INSERT INTO t VALUES (1); SELECT LAST_INSERT_ID() AS id")

        assert result.rows == [{"id": 7}]

    @pytest.mark.asyncio
    async def test_batch_session_connection_closed(self, responder, fake_pools, connect_with_pool):
        """Test a batch's connection is closed so its temporary tables do not leak."""
        responder.add("select * from scratch", [{"n": 1}])
        pool = fake_pools["aiomysql"](responder)
        connector = await connect_with_pool(_connector(), pool)
        before = len(pool.connections)

        batch = "CREATE TEMPORARY TABLE scratch (n INT); INSERT INTO scratch VALUES (1); SELECT * FROM scratch"
        await connector.execute_sql(batch)
        await connector.execute_sql(batch)

        batch_connections = pool.connections[before:]
        assert len(batch_connections) == 2
        assert all(connection.closed for connection in batch_connections)
        assert pool.acquired == pool.released

    @pytest.mark.asyncio
    async def test_single_statement_connection_reused(self, responder, fake_pools, connect_with_pool):
        """Test a single statement returns its connection to the pool open."""
        pool = fake_pools["aiomysql"](responder)
        connector = await connect_with_pool(_connector(), pool)

        await connector.execute_sql("SELECT 1")

        assert pool.connections[-1].closed is False

    @pytest.mark.asyncio
    async def test_readonly_allows_describe(self, responder, fake_pools, connect_with_pool):
        """Test DESCRIBE and SHOW are read statements."""
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        await connector.execute_sql("DESCRIBE users; SHOW TABLES", readonly=True)

    @pytest.mark.asyncio
    async def test_readonly_rejects_insert(self, responder, fake_pools, connect_with_pool):
        """Test writes are rejected in read-only mode."""
        connector = await connect_with_pool(_connector(), fake_pools["aiomysql"](responder))

        with pytest.raises(ReadOnlyViolationError):
            await connector.execute_sql("# audit\nINSERT INTO t VALUES (1)", readonly=True)


class TestMariaDBConnector:
    """Test the MariaDB connector shares the MySQL implementation."""

    def test_identity(self):
        """Test id, name and scheme."""
        connector = MariaDBConnector.from_dsn("mariadb://root:pw@localhost/db")

        assert connector.id == "mariadb"
        assert connector.name == "MariaDB"
        assert connector.config.port == 3306
        assert MariaDBConnector.schemes() == ("mariadb",)

    @pytest.mark.asyncio
    async def test_get_schemas(self, responder, fake_pools, connect_with_pool):
        """Test catalog queries work unchanged."""
        responder.add("information_schema.schemata", [{"schema_name": "db"}])
        connector = await connect_with_pool(
            MariaDBConnector.from_dsn("mariadb://root:pw@localhost/db"),
            fake_pools["aiomysql"](responder),
        )

        assert await connector.get_schemas() == ["db"]
