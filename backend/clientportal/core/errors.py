from __future__ import annotations


class PortalError(Exception):
    """Erro de domínio com mensagem pronta para o usuário."""

    status_code = 400
    default_message = "Requisição inválida"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PortalError):
    status_code = 422
    default_message = "Dados inválidos"


class NotFoundError(PortalError):
    status_code = 404
    default_message = "Não encontrado"


class AuthenticationError(PortalError):
    status_code = 401
    default_message = "Não autorizado"


class ForbiddenError(PortalError):
    status_code = 403
    default_message = "Acesso negado"


class ConflictError(PortalError):
    status_code = 409
    default_message = "Operação não permitida no estado atual"


class PlatformError(PortalError):
    status_code = 502
    default_message = "Erro ao comunicar com o serviço externo"


class InsecureConfigurationError(RuntimeError):
    """Segredo vazio ou padrão fora do ambiente de desenvolvimento."""
