from __future__ import annotations

from typing import Any

from recurring_notification.core.application.services.formatter_service import FormatterService
from recurring_notification.core.domain.entities.notification_template_entity import NotificationTemplateEntity
from recurring_notification.core.domain.entities.recipient import OpenItem, Recipient
from recurring_notification.core.domain.services.channel_policy import WHATSAPP
from recurring_notification.core.domain.services.flow_types import (
    DUE_REMINDER,
    OVERDUE_NOTICE,
    POST_SUSPENSION,
    PREVENTIVE_SUSPENSION,
    SUBJECTS,
    SUSPENSION,
)
from recurring_notification.core.utils.template_utils import render_message

DEFAULT_DESCRIPTION = "Cobrança de serviços"

DISPLAY_NAMES = {
    "bosque": "PLANO FAMILIAR CAMPO DO BOSQUE LTDA",
    "pax": "PAX PLANVITA",
}
DEFAULT_DISPLAY_NAME = "LIDER PLANVITA"

# ───────────────────────────────────────────────
# Textos padrão (WhatsApp: por cobrança mais próxima)
# ───────────────────────────────────────────────
WHATSAPP_TEXTS = {
    DUE_REMINDER: [
        "Olá, {{ nomeCliente }}",
        "Lembrete: sua cobrança de {{ valor }} vence em {{ vencimento }}.",
        "Descrição: {{ descricao }}.",
        "Pague ou consulte em: {{ linkCobranca }}",
    ],
    OVERDUE_NOTICE: [
        "Olá, {{ nomeCliente }}",
        "Identificamos uma pendência de {{ valor }} vencida em {{ vencimento }}.",
        "Descrição: {{ descricao }}.",
        "Regularize em: {{ linkCobranca }}",
    ],
    PREVENTIVE_SUSPENSION: [
        "Olá, {{ nomeCliente }}",
        "Seu plano pode ser suspenso em breve por pendência financeira.",
        "Cobrança de {{ valor }} vencida em {{ vencimento }} ({{ descricao }}).",
        "Evite suspensão regularizando em: {{ linkCobranca }}",
    ],
    SUSPENSION: [
        "Olá, {{ nomeCliente }}",
        "Seu plano foi suspenso por pendência financeira.",
        "Cobrança de {{ valor }} vencida em {{ vencimento }} ({{ descricao }}).",
        "Regularize em: {{ linkCobranca }}",
    ],
    POST_SUSPENSION: [
        "Olá, {{ nomeCliente }}",
        "Seu plano permanece suspenso por pendência financeira.",
        "Cobrança de {{ valor }} vencida em {{ vencimento }} ({{ descricao }}).",
        "Regularize o pagamento para reativar o plano: {{ linkCobranca }}",
    ],
}
WHATSAPP_PERIODIC_TEXT = [
    "Olá, {{ nomeCliente }}",
    "Sua cobrança gerada por {{ nomeEmpresa }} no valor de {{ valor }} vence em {{ vencimento }}.",
    "Descrição: {{ descricao }}.",
    "Visualize/regularize em: {{ linkCobranca }}",
]

EMAIL_HTML = """
<div style="font-family: Arial, sans-serif; background-color: #f4f5f7; padding: 24px;">
  <div style="max-width: 640px; margin: 0 auto; background: #ffffff; border-radius: 12px;">
    <div style="background: #16a34a; color: #ffffff; padding: 18px 24px;">
      <strong>{{ nomeEmpresa }}</strong> · {{ destaque }}
    </div>
    <div style="padding: 24px; color: #0f172a;">
      <p>Olá, {{ nomeCliente }}.</p>
      <p>{{ texto }}</p>
      <p>Cobrança mais próxima: <strong>{{ valor }}</strong> com vencimento em
      <strong>{{ vencimento }}</strong> ({{ descricao }}).</p>
      <p style="text-align: center; margin: 24px 0;">
        <a href="{{ linkCobranca }}" style="background: #16a34a; color: #ffffff; padding: 12px 24px;
           border-radius: 8px; text-decoration: none;">Visualizar cobrança</a>
      </p>
    </div>
  </div>
</div>
"""


class MessageBuilder:
    """
    Monta o payload enviado ao serviço de notificação.

    Template default do tenant para o canal tem prioridade; sem template,
    usa os textos padrão de cada fluxo.
    """

    def __init__(self, tenant_id: str, formatter: FormatterService | None = None) -> None:
        self.tenant = tenant_id.lower()
        self.fmt = formatter or FormatterService()

    @property
    def display_name(self) -> str:
        return DISPLAY_NAMES.get(self.tenant, DEFAULT_DISPLAY_NAME)

    @property
    def portal_url(self) -> str:
        return f"https://{self.tenant}.planvita.com.br/cliente"

    def template_vars(self, recipient: Recipient) -> dict[str, str]:
        nearest: OpenItem | None = recipient.items[0] if recipient.items else None
        return {
            "nomeCliente": recipient.name,
            "nomeEmpresa": self.display_name,
            "valor": self.fmt.format_currency(nearest.amount if nearest else None),
            "vencimento": self.fmt.format_date(nearest.due_date if nearest else None),
            "descricao": (nearest.description if nearest else None) or DEFAULT_DESCRIPTION,
            "linkCobranca": self.portal_url,
            "tenant": self.tenant,
        }

    def build(
        self,
        recipient: Recipient,
        flow_type: str,
        template: NotificationTemplateEntity | None = None,
    ) -> dict[str, Any]:
        variables = self.template_vars(recipient)
        metadata = {
            "tenantId": self.tenant,
            "tipo": flow_type,
            "cobrancas": [self._item_payload(i) for i in recipient.items],
            "totalPendente": str(recipient.total_due),
            "quantidadeCobrancas": recipient.item_count,
        }

        if recipient.channel == WHATSAPP:
            source = (template.text_body or template.html_body) if template else None
            text = render_message(source or self._whatsapp_default(flow_type), variables, autoescape=False)
            return {
                "to": recipient.destination,
                "channel": WHATSAPP,
                "message": text,
                "metadata": metadata,
            }

        text = render_message(
            (template.text_body if template else None) or self._email_default_text(recipient, flow_type),
            variables,
            autoescape=False,
        )
        if template and template.html_body:
            html = render_message(template.html_body, variables)
        else:
            html = render_message(
                EMAIL_HTML,
                {**variables, "texto": text, "destaque": SUBJECTS.get(flow_type, SUBJECTS["pendencia-periodica"])},
            )
        return {
            "to": recipient.destination,
            "channel": recipient.channel,
            "subject": (template.subject if template else None) or SUBJECTS.get(flow_type, SUBJECTS["pendencia-periodica"]),
            "message": text,
            "html": html,
            "metadata": metadata,
        }

    # ------------------------------------------------------------------
    @staticmethod
    def _whatsapp_default(flow_type: str) -> str:
        return "\n".join(WHATSAPP_TEXTS.get(flow_type, WHATSAPP_PERIODIC_TEXT))

    def _email_default_text(self, recipient: Recipient, flow_type: str) -> str:
        """Texto padrão do e-mail, baseado no total em aberto do titular."""
        total = self.fmt.format_currency(recipient.total_due)
        nearest = self.fmt.format_date(recipient.nearest_due_date) if recipient.nearest_due_date else None
        lines = ["Olá, {{ nomeCliente }}."]

        match flow_type:
            case "aviso-vencimento":
                lines.append(f"Lembrete: sua cobrança de {total} vence em {nearest or 'breve'}.")
                lines.append("Antecipe o pagamento para manter seus benefícios ativos.")
            case "aviso-pendencia":
                when = f" em {nearest}" if nearest else ""
                lines.append(f"Identificamos uma pendência de {total} vencida{when}.")
                lines.append("Regularize o quanto antes ou entre em contato conosco.")
            case "suspensao-preventiva":
                lines.append(f"Seu plano pode ser suspenso em breve devido a pendências que somam {total}.")
                lines.append("Evite a suspensão realizando o pagamento ou falando com nosso time.")
            case "suspensao":
                lines.append(f"Seu plano foi suspenso devido a pendências que somam {total}.")
                lines.append("Regularize o pagamento para restabelecer seus benefícios.")
            case "pos-suspensao":
                lines.append(f"Seu plano permanece suspenso e há pendências no valor total de {total}.")
                lines.append("Assim que o pagamento for regularizado, seu plano poderá ser reativado.")
            case _:
                lines.append(
                    f"Identificamos {recipient.item_count} cobrança(s) pendente(s) no valor total de {total}."
                )
                if nearest:
                    lines.append(f"O vencimento mais próximo é em {nearest}.")
                lines.append(
                    "Para manter seus benefícios ativos, regularize o pagamento ou fale conosco. "
                    "Se você já pagou, desconsidere este aviso."
                )
        return " ".join(lines)

    @staticmethod
    def _item_payload(item: OpenItem) -> dict[str, Any]:
        return {
            "contaId": item.receivable_id,
            "descricao": item.description,
            "valor": str(item.amount),
            "vencimento": item.due_date.isoformat(),
            "status": item.status,
            "diasAtraso": item.days_overdue,
        }
