class NotificationError(Exception):
    """Classe base para todas as exceções de notificação."""
    pass

class RecipientNotFoundError(NotificationError):
    """Titular inexistente no tenant consultado."""
    def __init__(self, customer_id: int) -> None:
        super().__init__(f"Cliente {customer_id} não encontrado")
        self.customer_id = customer_id

class TemplateNotFoundError(NotificationError):
    def __init__(self, template_id: int) -> None:
        super().__init__(f"Template {template_id} não encontrado")
        self.template_id = template_id
