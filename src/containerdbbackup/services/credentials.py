"""Database credential lookup from container environments."""

from typing import Dict, Optional

from containerdbbackup.constants import DATABASE_ENV_VAR, USER_ENV_VAR
from containerdbbackup.errors import CredentialsError
from containerdbbackup.errors_catalog import actionable_error
from containerdbbackup.models import ContainerHandle, DatabaseCredentials


class CredentialService:
    """Reads POSTGRES_DB and POSTGRES_USER from a running container."""

    def __init__(self, runtime, logger):
        self.runtime = runtime
        self.logger = logger

    def read_env_var(
        self,
        container: ContainerHandle,
        name: str,
        environment: Optional[Dict[str, str]] = None,
    ) -> Optional[str]:
        """Value of ``name`` in the container, None when unset.

        Pass ``environment`` to reuse an earlier read of the container.
        """
        if environment is None:
            environment = self.runtime.read_environment(container.name)
        return environment.get(name)

    def extract(self, container: ContainerHandle) -> DatabaseCredentials:
        environment = self.runtime.read_environment(container.name)

        values = {}
        for variable in (DATABASE_ENV_VAR, USER_ENV_VAR):
            value = self.read_env_var(container, variable, environment)
            # Unset and empty are both unusable for pg_dump.
            if value is None or not value.strip():
                raise CredentialsError(
                    actionable_error(
                        "missing_credentials",
                        container=container.name,
                        variable=variable,
                    )
                )
            values[variable] = value

        self.logger.debug(
            "Credentials for %s: database=%s user=%s",
            container.name,
            values[DATABASE_ENV_VAR],
            values[USER_ENV_VAR],
        )
        return DatabaseCredentials(database=values[DATABASE_ENV_VAR], user=values[USER_ENV_VAR])
