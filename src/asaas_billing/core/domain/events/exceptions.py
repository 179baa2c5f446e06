class AsaasError(Exception):
    """Classe base para erros da integração de cobrança com o Asaas."""
    pass

class AsaasAPIError(AsaasError):
    """
    Resposta não-2xx (ou falha de transporte) após esgotar as retentativas.
    `status_code` é None quando nem houve resposta HTTP.
    """
    def __init__(self, status_code: int | None, body: str, *, method: str = "", path: str = "") -> None:
        super().__init__(f"Asaas {method} {path} falhou (status={status_code}): {body[:300]}")
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path

class IntegrationNotConfiguredError(AsaasError):
    """Tenant sem chave de API / desabilitado em ASAAS_ENABLED_TENANTS."""
    pass

class MissingCustomerError(AsaasError):
    """Conta a receber sem titular: não há como criar a cobrança no provedor."""
    pass

class ProviderRecordNotFoundError(AsaasError):
    """Reconsulta não encontrou nenhuma cobrança correspondente no provedor."""
    pass

class InvalidTransitionError(AsaasError):
    def __init__(self, receivable_id: int, current: str, target: str) -> None:
        super().__init__(f"Conta {receivable_id}: transição {current} → {target} não permitida")
        self.receivable_id = receivable_id
        self.current = current
        self.target = target
