"""Application settings.

Settings are grouped the way the deployment file groups them (``server``,
``database``, ``jwt``). Every field can be overridden by an environment
variable named after its group and field in upper snake case, for example
``SERVER_PORT``, ``DATABASE_PARSE_TIME`` or ``JWT_SECRET``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SERVER_", env_file=".env", extra="ignore")

    port: int = Field(8080, description="Port the HTTP server binds to")
    base_path: str = Field("/api", description="Prefix mounted in front of every route")
    host: str = Field("0.0.0.0", description="Interface the HTTP server binds to")
    domain: str = Field("localhost", description="Public host name used in generated links")
    allowed_origins: str = Field("*", description="Comma separated CORS origins")

    @property
    def origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DATABASE_", env_file=".env", extra="ignore")

    driver: str = Field("memory", description="memory, sqlite or postgresql")
    host: str = "localhost"
    port: int = 5432
    username: str = "orderease"
    password: str = ""
    dbname: str = "orderease"
    charset: str = "utf8"
    parse_time: bool = True
    loc: str = "Local"
    log_level: str = Field("warn", description="SQL log level: silent, error, warn or info")

    @property
    def uri(self) -> str | None:
        if self.driver == "postgresql":
            return f"postgresql://{self.username}:{self.password}@{self.host}:{self.port}/{self.dbname}"
        if self.driver == "sqlite":
            return f"sqlite:///{self.dbname}.db"
        return None


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="JWT_", env_file=".env", extra="ignore")

    secret: str = Field("change-me", description="Signing secret shared with the token gateway")
    expiration: int = Field(24, description="Token lifetime in hours")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    server: ServerSettings = Field(default_factory=ServerSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    node_id: int = Field(1, ge=0, le=1023, description="Snowflake node id of this process")


@lru_cache
def get_settings() -> Settings:
    """Build settings once per process; call ``get_settings.cache_clear()`` to reload."""
    return Settings()


def configure_domain(domain, settings: Settings | None = None) -> None:
    """Point the domain's default database at the configured server.

    Must run before ``domain.init()``. The in-memory provider from
    ``domain.toml`` stays in place when ``DATABASE_DRIVER`` is ``memory``.
    """
    settings = settings or get_settings()
    uri = settings.database.uri
    if uri is not None:
        domain.config["databases"]["default"] = {"provider": settings.database.driver, "database_uri": uri}
