from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from clientportal.core.errors import InsecureConfigurationError
from clientportal.core.logging_setup import logger


INSECURE_SECRET_VALUES = frozenset(
    {
        "",
        "secret",
        "changeme",
        "default",
        "password",
        "123456",
        "jwtsecret",
        "admin123",
        "development-secret-change-in-production-min-32-chars",
    }
)


class Settings(BaseSettings):
    """
    Configurações globais do portal do cliente.
    Lê automaticamente variáveis do arquivo .env.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Projeto
    project_name: str = "Client Portal API"
    api_v1_str: str = "/api/v1"
    debug: bool = False
    environment: str = "development"

    # Segurança / JWT
    secret_key: str = "changeme"
    access_token_expire_minutes: int = 60 * 24
    algorithm: str = "HS256"

    # Banco de dados
    database_url: str = "sqlite:///./dev.db"

    # CORS
    allowed_origins: List[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # URL pública do front (links de acesso ao portal)
    public_app_url: str = "http://localhost:5173"

    # Painel administrativo
    admin_password: str = "admin123"
    admin_session_ttl_hours: int = 24

    # Pagamentos (backend externo que fala com Stripe / Mercado Pago / PIX)
    payments_api_url: str = "http://localhost:3000"
    payments_timeout_seconds: float = 15.0

    def resolved_public_app_url(self) -> str:
        return (self.public_app_url or "").strip().rstrip("/")

    def insecure_fields(self) -> list[str]:
        """Nomes dos segredos vazios ou com valores padrão conhecidos."""
        flagged: list[str] = []
        for name in ("secret_key", "admin_password"):
            value = (getattr(self, name) or "").strip().lower()
            if value in INSECURE_SECRET_VALUES:
                flagged.append(name)
        return flagged


def validate_secrets(config: Settings) -> None:
    flagged = config.insecure_fields()
    if not flagged:
        return
    if config.environment.strip().lower() == "development":
        for name in flagged:
            logger.warning(f"[CONFIG] {name} usa um valor inseguro (aceito apenas em development)")
        return
    raise InsecureConfigurationError(
        f"Configuração insegura para o ambiente '{config.environment}': {', '.join(flagged)}"
    )


@lru_cache
def get_settings() -> Settings:
    """Retorna a instância de configurações globais (cacheada)."""
    return Settings()


settings = get_settings()
