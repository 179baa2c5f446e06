from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from typing import Any

from django.db import transaction
from django.db.models import Case, IntegerField, Min, Value, When

from billing_core.adapters.context.tenant_context import tenant_db_alias
from billing_core.core.domain.entities.customer_entity import CustomerEntity
from billing_core.core.domain.entities.receivable_entity import OPEN_STATUSES, ReceivableEntity
from billing_core.core.domain.events.exceptions import EntityNotFoundError
from billing_core.core.domain.repositories.receivable_repository import ReceivableRepository
from plugins.django_interface.models import Receivable as ReceivableModel


class ReceivableRepoImpl(ReceivableRepository):
    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        self.db = tenant_db_alias(tenant_id)

    def _qs(self):
        return ReceivableModel.objects.using(self.db)

    @staticmethod
    def _to_entity(model: ReceivableModel | None) -> ReceivableEntity | None:
        return ReceivableEntity.from_model(model) if model else None

    def atomic(self):
        return transaction.atomic(using=self.db)

    def find_by_id(self, receivable_id: int) -> ReceivableEntity | None:
        return self._to_entity(self._qs().filter(pk=receivable_id).first())

    def find_by_id_for_update(self, receivable_id: int) -> ReceivableEntity | None:
        return self._to_entity(self._qs().select_for_update().filter(pk=receivable_id).first())

    def find_by_payment_id_for_update(self, asaas_payment_id: str) -> ReceivableEntity | None:
        return self._to_entity(
            self._qs().select_for_update().filter(asaas_payment_id=asaas_payment_id).first()
        )

    def find_by_subscription_id_for_update(self, asaas_subscription_id: str) -> ReceivableEntity | None:
        return self._to_entity(
            self._qs()
            .select_for_update()
            .filter(asaas_subscription_id=asaas_subscription_id)
            .annotate(
                closed=Case(
                    When(status__in=OPEN_STATUSES, then=Value(0)),
                    default=Value(1),
                    output_field=IntegerField(),
                )
            )
            .order_by("closed", "due_date", "pk")
            .first()
        )

    def update(self, receivable_id: int, **fields: Any) -> ReceivableEntity:
        model = self._qs().filter(pk=receivable_id).first()
        if model is None:
            raise EntityNotFoundError("Receivable", receivable_id)
        for name, value in fields.items():
            setattr(model, name, value)
        model.save(using=self.db, update_fields=[*fields.keys(), "updated_at"])
        return ReceivableEntity.from_model(model)

    def oldest_open_due_dates(self, customer_ids: Sequence[int]) -> dict[int, date]:
        if not customer_ids:
            return {}
        rows = (
            self._qs()
            .filter(customer_id__in=customer_ids, status__in=OPEN_STATUSES)
            .values("customer_id")
            .annotate(oldest_due=Min("due_date"))
        )
        return {row["customer_id"]: row["oldest_due"] for row in rows}

    def list_open_with_customer(self) -> list[tuple[ReceivableEntity, CustomerEntity]]:
        qs = (
            self._qs()
            .select_related("customer")
            .filter(status__in=OPEN_STATUSES, customer__isnull=False)
            .order_by("due_date", "pk")
        )
        return [
            (ReceivableEntity.from_model(m), CustomerEntity.from_model(m.customer))
            for m in qs
        ]
