"""Registry configuration.

All fields can be set via ``VOCABREG_*`` environment variables (e.g.
``VOCABREG_DATA_FILES_PATH=/srv/vocabs/data``) or through a ``.env`` file.
Providers read their endpoints and credentials from here at the moment
they run, so tests can swap settings with ``reset_settings()``.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class RegistrySettings(BaseSettings):
    """Vocabulary registry configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VOCABREG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///vocabreg.db")
    database_echo: bool = Field(default=False)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool | None = Field(default=None, description="None: JSON unless stderr is a tty")

    # ── Files ────────────────────────────────────────────────────
    data_files_path: Path = Field(default_factory=lambda: Path.home() / ".vocabreg" / "data")
    harvest_data_path: str = Field(default="harvest_data", description="Subdirectory for harvested content")
    backup_files_path: Path = Field(default_factory=lambda: Path.home() / ".vocabreg" / "backup")
    download_prefix: str = Field(default="http://localhost/registry/api/resource/downloads/")

    # ── HTTP ─────────────────────────────────────────────────────
    http_timeout: float = Field(default=60.0, description="Seconds, applied to every provider request")

    # ── PoolParty ────────────────────────────────────────────────
    poolparty_remote_url: str = Field(default="http://localhost:8081/PoolParty/")
    poolparty_username: str = Field(default="")
    poolparty_password: SecretStr = Field(default=SecretStr(""))
    poolparty_format: str = Field(default="N-Triples")
    poolparty_export_module: str = Field(default="concepts")

    # ── Sesame / RDF4J ───────────────────────────────────────────
    sesame_server_url: str = Field(default="http://localhost:8080/rdf4j-server/")
    sesame_sparql_prefix: str = Field(default="http://localhost:8080/repository/api/sparql/")

    # ── SISSVoc ──────────────────────────────────────────────────
    sissvoc_spec_template: Path = Field(default=Path("conf/sissvoc-spec-template.ttl"))
    sissvoc_spec_output_path: Path = Field(default_factory=lambda: Path.home() / ".vocabreg" / "sissvoc")
    sissvoc_endpoints_prefix: str = Field(default="http://localhost:8080/repository/api/lda/")
    sissvoc_deploy_path: str = Field(default="/repository/api/lda")
    sissvoc_service_title: str = Field(default="Vocabularies LDA service")
    sissvoc_service_author: str = Field(default="Vocabulary Services")
    sissvoc_service_author_email: str = Field(default="services@example.org")
    sissvoc_service_homepage: str = Field(default="http://www.example.org/")
    sissvoc_sparql_endpoint_prefix: str = Field(
        default="http://localhost:8080/repository/openrdf-sesame/repositories/"
    )
    sissvoc_html_stylesheet: str = Field(default="resources/default/transform/ashtml-sissvoc.xsl")


_settings: RegistrySettings | None = None


def get_settings() -> RegistrySettings:
    """Load and cache a :class:`RegistrySettings` instance."""
    global _settings
    if _settings is None:
        _settings = RegistrySettings()
    return _settings


def reset_settings(settings: RegistrySettings | None = None) -> None:
    """Drop the cached settings, or install *settings* (primarily for testing)."""
    global _settings
    _settings = settings
