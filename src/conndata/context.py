from __future__ import annotations

import pathlib
from typing import Optional

from conndata.adapters.registry import AdapterRegistry
from conndata.auth.authorizer import AccountMembershipAuthorizer, Authorizer
from conndata.common.settings import settings
from conndata.configs.manager import ConfigManager
from conndata.connections.registry import InMemoryConnectionRegistry
from conndata.jobs.registry import InMemoryJobRunRegistry
from conndata.secrets import SecretManager
from conndata.services.connection_data import ConnectionDataService


class ConnDataContext:
    """
    Centralized application context that manages the initialization lifecycle.

    Secrets are configured BEFORE connections are loaded so that
    ``${provider:key}`` references in connection credentials resolve.
    """

    def __init__(
        self,
        connections_config_path: Optional[pathlib.Path] = None,
        job_runs_config_path: Optional[pathlib.Path] = None,
        secrets_config_path: Optional[pathlib.Path] = None,
        authorizer: Optional[Authorizer] = None,
    ):
        """
        Builds registries and the service from configuration files.
        Paths default to the values in global settings.
        """
        connections_config_path = connections_config_path or pathlib.Path(settings.connections_config_path)
        job_runs_config_path = job_runs_config_path or pathlib.Path(settings.job_runs_config_path)
        secrets_config_path = secrets_config_path or pathlib.Path(settings.secrets_config_path)

        self.secret_manager = SecretManager()
        cm = ConfigManager(secrets=self.secret_manager)
        self.config_manager = cm

        secret_configs = cm.load_secrets(secrets_config_path)
        if secret_configs:
            self.secret_manager.configure(secret_configs)

        self.connection_registry = InMemoryConnectionRegistry(cm.load_connections(connections_config_path))
        self.job_run_registry = InMemoryJobRunRegistry(cm.load_job_runs(job_runs_config_path))
        self.adapter_registry = AdapterRegistry(job_runs=self.job_run_registry)

        self.service = ConnectionDataService(
            connections=self.connection_registry,
            authorizer=authorizer or AccountMembershipAuthorizer(),
            adapters=self.adapter_registry,
        )
