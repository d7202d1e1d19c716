"""
Standard compliance suite for connection adapters.
Any new adapter should pass these tests before it is registered.
"""
import pytest

from conndata.adapters import ConnectionAdapter
from conndata.adapters.models import AwsS3RunSelector, DatabaseColumn
from conndata.adapters.s3 import AwsS3Adapter
from conndata.common.errors import NotImplementedConnectionError


class AdapterComplianceSuite:
    selector = None

    @pytest.fixture
    def adapter(self) -> ConnectionAdapter:
        """Override this fixture in subclass to return the adapter under test."""
        raise NotImplementedError

    @pytest.fixture
    def table(self):
        """(schema, table) of a populated table."""
        raise NotImplementedError

    def test_schema_contract(self, adapter):
        """Every column carries schema, table and column names."""
        columns = adapter.get_schema(self.selector)
        assert columns
        for col in columns:
            assert isinstance(col, DatabaseColumn)
            assert col.schema_name and col.table and col.column

    def test_table_schema_is_a_subset(self, adapter, table):
        schema, name = table
        columns = adapter.get_table_schema(schema, name, self.selector)
        assert columns
        assert all(c.table_key == f"{schema}.{name}" for c in columns)
        assert set(columns) <= set(adapter.get_schema(self.selector))

    def test_unknown_table_is_empty(self, adapter):
        assert adapter.get_table_schema("nope", "missing_table_xyz", self.selector) == []

    def test_stream_contract(self, adapter, table):
        """Rows are keyed by column name and hold bytes or None."""
        schema, name = table
        rows = list(adapter.stream_rows(schema, name, self.selector))
        assert rows
        for row in rows:
            assert all(isinstance(k, str) for k in row)
            assert all(v is None or isinstance(v, bytes) for v in row.values())

    def test_catalog_operations_contract(self, adapter, table):
        """Backends without a catalog must fail loudly rather than return empty results."""
        schema, name = table
        if adapter.has_catalog:
            assert adapter.get_row_count(schema, name) > 0
        else:
            with pytest.raises(NotImplementedConnectionError):
                adapter.get_row_count(schema, name)
            with pytest.raises(NotImplementedConnectionError):
                adapter.get_table_constraints([schema])


class TestSqliteAdapter(AdapterComplianceSuite):

    @pytest.fixture
    def adapter(self, sqlite_adapter):
        return sqlite_adapter

    @pytest.fixture
    def table(self):
        return "main", "users"


class TestAwsS3Adapter(AdapterComplianceSuite):
    selector = AwsS3RunSelector(job_run_id="r1")

    @pytest.fixture
    def adapter(self, s3_connection, fake_s3, ndjson_gz):
        client = fake_s3({
            "workflows/r1/activities/public.users/data/part-1.json.gz": ndjson_gz(
                {"id": 1, "email": "a@example.com"}, {"id": 2, "email": None}
            ),
            "workflows/r1/activities/public.orders/data/part-1.json.gz": ndjson_gz({"id": 7, "total": 9.5}),
        })
        return AwsS3Adapter(s3_connection, s3_client=client)

    @pytest.fixture
    def table(self):
        return "public", "users"
