from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from django.db import transaction
from django.db.models import Q

from billing_core.adapters.context.tenant_context import tenant_db_alias
from billing_core.core.application.cqrs import PagedResult
from billing_core.core.domain.entities.customer_entity import CustomerEntity
from billing_core.core.domain.repositories.customer_repository import CustomerRepository
from plugins.django_interface.models import Customer as CustomerModel


class CustomerRepoImpl(CustomerRepository):
    def __init__(self, tenant_id: str) -> None:
        self.tenant_id = tenant_id
        self.db = tenant_db_alias(tenant_id)

    def _qs(self):
        return CustomerModel.objects.using(self.db)

    def atomic(self):
        return transaction.atomic(using=self.db)

    def find_by_id(self, customer_id: int) -> CustomerEntity | None:
        model = self._qs().filter(pk=customer_id).first()
        return CustomerEntity.from_model(model) if model else None

    def find_by_id_for_update(self, customer_id: int) -> CustomerEntity | None:
        model = self._qs().select_for_update().filter(pk=customer_id).first()
        return CustomerEntity.from_model(model) if model else None

    def set_asaas_customer_id(self, customer_id: int, asaas_customer_id: str) -> None:
        self._qs().filter(pk=customer_id).update(asaas_customer_id=asaas_customer_id)

    def list_ids_after(self, cursor: int, limit: int) -> list[int]:
        return list(
            self._qs()
            .filter(pk__gt=cursor)
            .order_by("pk")
            .values_list("pk", flat=True)[:limit]
        )

    def plan_statuses(self, customer_ids: Sequence[int]) -> dict[int, str]:
        return dict(self._qs().filter(pk__in=customer_ids).values_list("pk", "plan_status"))

    def bulk_set_plan_status(self, customer_ids: Sequence[int], status: str) -> int:
        if not customer_ids:
            return 0
        return self._qs().filter(pk__in=customer_ids).update(plan_status=status)

    def update_notification_preferences(
        self,
        customer_id: int,
        *,
        blocked: bool | None = None,
        channel: str | None = None,
    ) -> CustomerEntity | None:
        changes: dict[str, Any] = {}
        if blocked is not None:
            changes["notifications_blocked"] = blocked
        if channel is not None:
            changes["notification_channel"] = channel
        if changes:
            self._qs().filter(pk=customer_id).update(**changes)
        return self.find_by_id(customer_id)

    def list(self, filtros: dict[str, Any], page: int, page_size: int) -> PagedResult[CustomerEntity]:
        qs = self._qs().order_by("pk")
        if filtros.get("plan_status"):
            qs = qs.filter(plan_status=filtros["plan_status"])
        if filtros.get("search"):
            term = filtros["search"]
            qs = qs.filter(Q(name__icontains=term) | Q(cpf__icontains=term) | Q(email__icontains=term))

        total = qs.count()
        offset = (page - 1) * page_size
        items = [CustomerEntity.from_model(m) for m in qs[offset: offset + page_size]]
        return PagedResult(items=items, total=total, page=page, page_size=page_size)
