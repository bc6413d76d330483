from typing import Optional


class CondoError(Exception):
    """
    Base error of the application.
    `message` is what the user sees; `detail` is extra context for logs/clients.
    """
    status_code: int = 400
    default_message: str = "Não foi possível concluir a operação."

    def __init__(self, message: Optional[str] = None, detail: Optional[str] = None, field: Optional[str] = None):
        self.message = message or self.default_message
        self.detail = detail
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"message": self.message, "detail": self.detail}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(CondoError):
    status_code = 422
    default_message = "Dados inválidos."


class ConflictError(CondoError):
    status_code = 409
    default_message = "O registro entra em conflito com outro existente."


class NotFoundError(CondoError):
    status_code = 404
    default_message = "Registro não encontrado."


class PermissionDeniedError(CondoError):
    status_code = 403
    default_message = "Apenas administradores podem realizar esta ação."


class AuthenticationError(CondoError):
    status_code = 401
    default_message = "Sessão inválida ou expirada."


class TransientNetworkError(CondoError):
    status_code = 503
    default_message = "Falha de comunicação com o servidor. Tente novamente."
