"""Construtores mínimos de registros para os testes (banco default)."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from plugins.django_interface.models import BusinessRules, Customer, Receivable, Salesperson


def make_salesperson(name: str = "Vendedora", commission: str = "50.00") -> Salesperson:
    return Salesperson.objects.create(name=name, referral_commission_value=Decimal(commission))


def make_customer(name: str = "Maria Silva", **fields) -> Customer:
    defaults = {
        "email": "maria@example.com",
        "phone": "(11) 98888-7777",
        "cpf": "123.456.789-09",
    }
    defaults.update(fields)
    return Customer.objects.create(name=name, **defaults)


def make_receivable(customer: Customer | None, days_overdue: int = 0, amount: str = "150.00", **fields) -> Receivable:
    return Receivable.objects.create(
        customer=customer,
        amount=Decimal(amount),
        due_date=timezone.localdate() - timedelta(days=days_overdue),
        description=fields.pop("description", "Mensalidade"),
        **fields,
    )


def set_rules(tenant_id: str = "lider", **fields) -> BusinessRules:
    rules, _ = BusinessRules.objects.update_or_create(tenant_id=tenant_id, defaults=fields)
    return rules
