"""
UTXO Indexer - Configuration Management
=========================================
Gestione centralizzata configurazione con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso UTXO_INDEXER_
- File .env support
"""

from pathlib import Path
from typing import Optional, List
from functools import lru_cache

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utxo_indexer.constants import (
    SERVICE_NAME,
    SOFTWARE_VERSION,
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_DB_FILENAME,
)
from utxo_indexer.errors import ConfigError


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class IndexerSettings(BaseSettings):
    """
    Configurazione principale del ledger indexer.

    Supporta:
    - Caricamento da environment variables (UTXO_INDEXER_*)
    - Caricamento da file .env
    - Override programmatici
    - Validazione automatica

    Example:
        # Da environment
        export UTXO_INDEXER_DATABASE_URL="postgresql+psycopg://u:p@db/ledger"
        export UTXO_INDEXER_API_PORT=3001

        # Da codice
        config = IndexerSettings(data_dir=Path("/tmp/ledger"))
    """

    model_config = SettingsConfigDict(
        env_prefix='UTXO_INDEXER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # SERVICE IDENTIFICATION
    # ========================================================================

    service_name: str = Field(
        default=SERVICE_NAME,
        description="Nome servizio (riportato da GET /)"
    )

    software_version: str = Field(
        default=SOFTWARE_VERSION,
        description="Versione software"
    )

    # ========================================================================
    # STORAGE
    # ========================================================================

    data_dir: Path = Field(
        default=Path("./data"),
        description="Directory dati (database SQLite di default)"
    )

    database_url: Optional[str] = Field(
        default=None,
        description="SQLAlchemy URL (auto: sqlite:///data_dir/utxo_indexer.db)"
    )

    db_echo: bool = Field(
        default=False,
        description="Log SQL statements emessi da SQLAlchemy"
    )

    db_timeout_seconds: int = Field(
        default=30,
        ge=1,
        le=600,
        description="Timeout lock/connessione database (secondi)"
    )

    # ========================================================================
    # API
    # ========================================================================

    api_host: str = Field(
        default=DEFAULT_API_HOST,
        description="Host API"
    )

    api_port: int = Field(
        default=DEFAULT_API_PORT,
        ge=1,
        le=65535,
        description="Porta API REST"
    )

    api_enable_cors: bool = Field(
        default=True,
        description="Abilita CORS per API"
    )

    api_cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="CORS allowed origins"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_to_file: bool = Field(
        default=True,
        description="Salva log su file"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    log_format: str = Field(
        default="json",
        description="Formato log: json, text"
    )

    log_rotation_mb: int = Field(
        default=100,
        ge=1,
        description="Dimensione max file log prima rotation (MB)"
    )

    log_retention_days: int = Field(
        default=30,
        ge=1,
        description="Giorni retention log files"
    )

    enable_audit_log: bool = Field(
        default=True,
        description="Audit trail di blocchi accettati e rollback"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Valida log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower

    # ========================================================================
    # POST-INIT PROCESSING
    # ========================================================================

    def model_post_init(self, __context) -> None:
        """Post-initialization: default database URL"""
        if self.database_url is None:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            db_file = (self.data_dir / DEFAULT_DB_FILENAME).resolve()
            self.database_url = f"sqlite:///{db_file.as_posix()}"

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def is_sqlite(self) -> bool:
        """Check se backend SQLite"""
        return self.database_url.startswith("sqlite")

    def to_dict(self) -> dict:
        """Serializza config"""
        return self.model_dump()

    def to_json(self) -> str:
        """Serializza config in JSON"""
        return self.model_dump_json(indent=2)

    def __repr__(self) -> str:
        return (
            f"IndexerSettings("
            f"database_url={self.database_url}, "
            f"api_port={self.api_port}, "
            f"log_level={self.log_level})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

def _load_settings(**kwargs) -> IndexerSettings:
    """
    Build settings, reporting invalid values as ConfigError.

    Raises:
        ConfigError: Valore non valido (env, .env o override)
    """
    try:
        return IndexerSettings(**kwargs)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigError(
            "Invalid configuration: " + ", ".join(fields),
            code="INVALID_CONFIG",
            details={"errors": [err["msg"] for err in e.errors()]}
        ) from e


@lru_cache(maxsize=1)
def get_settings() -> IndexerSettings:
    """
    Ottieni singleton instance di IndexerSettings.

    Returns:
        IndexerSettings: Instance configurazione

    Raises:
        ConfigError: Configurazione non valida
    """
    return _load_settings()


def reload_settings() -> IndexerSettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables runtime.
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> IndexerSettings:
    """
    Override settings con valori custom.

    Utile per testing.

    Example:
        >>> test_config = override_settings(log_to_file=False)

    Raises:
        ConfigError: Override non valido
    """
    return _load_settings(**kwargs)


__all__ = [
    "IndexerSettings",
    "get_settings",
    "reload_settings",
    "override_settings",
]
