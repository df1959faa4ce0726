#!/usr/bin/env python3
"""
Connection and document layout settings for the BaseX store.

Every value can be overridden via environment variables so the same code
runs against a local BaseX server or a containerised one.
"""

import logging

from pydantic import BaseModel, Field

from .env_utils import getenv_clean, getenv_int

logger = logging.getLogger(__name__)


class DocumentLayout(BaseModel):
    """Element names of the collections inside the store document.

    The store holds one document shaped as::

        <root>
          <departments><dept codi="..."/>...</departments>
          <employees><emp codi="..." dept="..."/>...</employees>
        </root>
    """

    root: str = "root"
    departments: str = "departments"
    employees: str = "employees"

    model_config = {"frozen": True}

    @property
    def departments_path(self) -> str:
        return f"/{self.root}/{self.departments}"

    @property
    def employees_path(self) -> str:
        return f"/{self.root}/{self.employees}"

    def container_path(self, collection: str) -> str:
        """Absolute path of a collection container ("departments" or "employees")."""
        return getattr(self, f"{collection}_path")


class StoreSettings(BaseModel):
    """BaseX connection settings.

    Environment Variables:
        - BASEX_HOST: Server host (default: localhost)
        - BASEX_PORT: Server port (default: 1984)
        - BASEX_USER: Authentication username (default: admin)
        - BASEX_PASSWORD: Authentication password (default: admin)
        - BASEX_DATABASE: Database opened for the session (default: empresa)
        - STAFFDB_ROOT_ELEMENT / STAFFDB_DEPARTMENTS_ELEMENT /
          STAFFDB_EMPLOYEES_ELEMENT: document layout element names
    """

    host: str = "localhost"
    port: int = Field(default=1984, gt=0, lt=65536)
    user: str = "admin"
    password: str = "admin"
    database: str = "empresa"
    layout: DocumentLayout = Field(default_factory=DocumentLayout)

    @classmethod
    def from_env(cls) -> "StoreSettings":
        """Build settings from the environment, falling back to defaults."""
        defaults = cls()
        settings = cls(
            host=getenv_clean("BASEX_HOST", defaults.host),
            port=getenv_int("BASEX_PORT", defaults.port),
            user=getenv_clean("BASEX_USER", defaults.user),
            password=getenv_clean("BASEX_PASSWORD", defaults.password),
            database=getenv_clean("BASEX_DATABASE", defaults.database),
            layout=DocumentLayout(
                root=getenv_clean("STAFFDB_ROOT_ELEMENT", defaults.layout.root),
                departments=getenv_clean("STAFFDB_DEPARTMENTS_ELEMENT", defaults.layout.departments),
                employees=getenv_clean("STAFFDB_EMPLOYEES_ELEMENT", defaults.layout.employees),
            ),
        )
        logger.debug(
            f"Store settings: {settings.user}@{settings.host}:{settings.port}/{settings.database}"
        )
        return settings
