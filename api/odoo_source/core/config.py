"""
Configuración central de la aplicación.
Gestiona variables de entorno y configuraciones globales.
La lista de conexiones Odoo vive en un archivo JSON aparte
(ODOO_CONNECTIONS_FILE), ver `core/connections_config.py`.
"""
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Clase de configuración de la aplicación.
    Lee variables de entorno y proporciona valores por defecto.

    Store de nodos:
    - NODE_STORE_BACKEND=memory: nodos en memoria del proceso (desarrollo, tests)
    - NODE_STORE_BACKEND=postgres: tabla odoo_nodes en DATABASE_URL
    """

    # Configuración de la aplicación
    APP_NAME: str = Field(default="Odoo Node Source")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuración del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Conexiones Odoo y store de nodos
    ODOO_CONNECTIONS_FILE: str = Field(default="odoo_connections.json")
    NODE_STORE_BACKEND: str = Field(default="memory")
    DATABASE_URL: str = Field(default="")

    # Sync
    SYNC_PAGE_SIZE: int = Field(default=50, ge=1)
    SYNC_MAX_PARALLEL_CONNECTIONS: int = Field(default=4, ge=1)

    # Transporte JSON-RPC (reintentos con backoff exponencial en 429/5xx)
    ODOO_TIMEOUT_S: float = Field(default=30.0)
    ODOO_MAX_RETRIES: int = Field(default=3, ge=0)
    ODOO_MIN_BACKOFF_S: float = Field(default=0.5)
    ODOO_MAX_BACKOFF_S: float = Field(default=10.0)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/odoo_sync.log")

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"

    class Config:
        """Configuración de Pydantic."""
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignorar campos extra del .env


# Instancia global de configuración
settings = Settings()
