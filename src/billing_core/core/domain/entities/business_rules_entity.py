from __future__ import annotations

from dataclasses import dataclass

from billing_core.core.domain.entities._base import EntityMixin

DEFAULT_SUSPENSION_DAYS = 90
DEFAULT_DUE_REMINDER_DAYS = 2
DEFAULT_OVERDUE_REMINDER_DAYS = 1
DEFAULT_OVERDUE_REPEAT_DAYS = 1
DEFAULT_PREVENTIVE_SUSPENSION_DAYS = 85
DEFAULT_POST_SUSPENSION_DAYS = 92


@dataclass(slots=True)
class BusinessRulesEntity(EntityMixin):
    """Regras do tenant já com os defaults aplicados aos campos não preenchidos."""
    tenant_id: str
    suspension_days: int = DEFAULT_SUSPENSION_DAYS
    due_reminder_days: int = DEFAULT_DUE_REMINDER_DAYS
    overdue_reminder_days: int = DEFAULT_OVERDUE_REMINDER_DAYS
    overdue_repeat_days: int = DEFAULT_OVERDUE_REPEAT_DAYS
    preventive_suspension_days: int = DEFAULT_PREVENTIVE_SUSPENSION_DAYS
    post_suspension_days: int = DEFAULT_POST_SUSPENSION_DAYS
    overdue_notice_channel: str | None = None

    @classmethod
    def from_model(cls, model) -> BusinessRulesEntity:
        defaults = cls(tenant_id=model.tenant_id)
        values = {
            name: getattr(model, name)
            for name in (
                "suspension_days",
                "due_reminder_days",
                "overdue_reminder_days",
                "overdue_repeat_days",
                "preventive_suspension_days",
                "post_suspension_days",
            )
        }
        return cls(
            tenant_id=model.tenant_id,
            overdue_notice_channel=model.overdue_notice_channel,
            **{k: (v if v is not None else getattr(defaults, k)) for k, v in values.items()},
        )
