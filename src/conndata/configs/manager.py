import yaml
import pathlib
from typing import Any, List, Optional
from pydantic import ValidationError

from conndata.common.settings import settings
from conndata.connections.models import Connection
from conndata.jobs.models import JobRun
from conndata.secrets.manager import SecretManager, secret_manager
from .connections import ConnectionsFileConfig
from .jobs import JobRunsFileConfig
from .secrets import SecretProviderConfig, SecretsFileConfig


class ConfigManager:
    """
    Centralized reader for connection, job-run and secret provider configuration.
    Validates YAML envelopes and resolves secret references in connection credentials.
    """

    def __init__(
        self,
        project_root: Optional[pathlib.Path] = None,
        secrets: Optional[SecretManager] = None,
    ):
        """
        Args:
            project_root: Optional override for project root. If None, uses CWD.
            secrets: Secret manager used to resolve "${provider:key}" references.
        """
        root = project_root or pathlib.Path.cwd()
        self._secrets = secrets or secret_manager

        self._connections_path = root / settings.connections_config_path
        self._job_runs_path = root / settings.job_runs_config_path
        self._secrets_path = root / settings.secrets_config_path

    def _read_yaml(self, target_path: pathlib.Path) -> Any:
        try:
            return yaml.safe_load(target_path.read_text(encoding="utf-8"))
        except yaml.YAMLError as e:
            raise ValueError(f"Failed to parse YAML from {target_path}: {e}") from e

    def load_connections(self, path: Optional[pathlib.Path] = None) -> List[Connection]:
        """Loads connection records and resolves their secret references."""
        target_path = path or self._connections_path

        if not target_path.exists():
            raise FileNotFoundError(f"Connections config not found: {target_path}")

        raw = self._read_yaml(target_path) or {}
        try:
            file_config = ConnectionsFileConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Connections Configuration Invalid: {e}") from e
        return self._secrets.resolve_object(file_config.connections)

    def load_job_runs(self, path: Optional[pathlib.Path] = None) -> List[JobRun]:
        """Loads job run history. A missing file means no runs are known."""
        target_path = path or self._job_runs_path
        if not target_path.exists():
            return []

        raw = self._read_yaml(target_path) or {}
        try:
            return JobRunsFileConfig.model_validate(raw).runs
        except ValidationError as e:
            raise ValueError(f"Job Runs Configuration Invalid: {e}") from e

    def load_secrets(self, path: Optional[pathlib.Path] = None) -> List[SecretProviderConfig]:
        """Loads Secret configurations."""
        target_path = path or self._secrets_path
        if not target_path.exists():
            return []

        raw = self._read_yaml(target_path) or {}
        try:
            file_config = SecretsFileConfig.model_validate(raw)
        except ValidationError as e:
            raise ValueError(f"Secret Configuration Invalid: {e}") from e
        return file_config.providers
