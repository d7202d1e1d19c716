import os
from unittest.mock import patch

import pytest

from conndata.configs.manager import ConfigManager
from conndata.connections.models import AwsS3ConnectionConfig, ConnectionType, PostgresConnectionConfig
from conndata.secrets.manager import SecretManager

CONNECTIONS_YAML = """
version: 1
connections:
  - id: pg-1
    account_id: acct-1
    connection_config:
      type: postgres
      host: db.internal
      port: 5432
      name: app
      user: app
      password: ${env:PG_PASSWORD}
      ssl_mode: require
  - id: lake
    account_id: acct-1
    connection_config:
      type: aws_s3
      bucket: data-lake
      region: us-east-1
"""

JOB_RUNS_YAML = """
version: 1
runs:
  - job_id: job-1
    job_run_id: r1
    started_at: 2024-01-01T00:00:00Z
  - job_id: job-1
    job_run_id: r2
"""


@pytest.fixture
def manager(tmp_path):
    return ConfigManager(project_root=tmp_path, secrets=SecretManager())


def test_load_connections_validates_union_and_resolves_secrets(manager, tmp_path):
    # Validates the discriminated config union and secret resolution because credentials live in env vars.
    # Arrange
    path = tmp_path / "connections.yaml"
    path.write_text(CONNECTIONS_YAML)

    # Act
    with patch.dict(os.environ, {"PG_PASSWORD": "s3cr3t"}):
        connections = manager.load_connections(path)

    # Assert
    pg, lake = connections
    assert isinstance(pg.connection_config, PostgresConnectionConfig)
    assert pg.connection_config.password.get_secret_value() == "s3cr3t"
    assert pg.connection_type == ConnectionType.POSTGRES
    assert isinstance(lake.connection_config, AwsS3ConnectionConfig)
    assert lake.connection_config.bucket == "data-lake"


def test_load_connections_missing_file_raises(manager, tmp_path):
    with pytest.raises(FileNotFoundError):
        manager.load_connections(tmp_path / "absent.yaml")


def test_load_connections_rejects_unknown_type(manager, tmp_path):
    # Arrange
    path = tmp_path / "connections.yaml"
    path.write_text(
        "connections:\n  - id: x\n    account_id: a\n    connection_config:\n      type: oracle\n"
    )

    # Act / Assert
    with pytest.raises(ValueError, match="Connections Configuration Invalid"):
        manager.load_connections(path)


def test_load_connections_rejects_malformed_yaml(manager, tmp_path):
    path = tmp_path / "connections.yaml"
    path.write_text("connections: [unclosed")

    with pytest.raises(ValueError, match="Failed to parse YAML"):
        manager.load_connections(path)


def test_load_job_runs(manager, tmp_path):
    # Arrange
    path = tmp_path / "job_runs.yaml"
    path.write_text(JOB_RUNS_YAML)

    # Act
    runs = manager.load_job_runs(path)

    # Assert
    assert [r.job_run_id for r in runs] == ["r1", "r2"]
    assert runs[0].started_at is not None
    assert runs[1].started_at is None


def test_missing_optional_files_yield_empty_lists(manager, tmp_path):
    assert manager.load_job_runs(tmp_path / "none.yaml") == []
    assert manager.load_secrets(tmp_path / "none.yaml") == []
