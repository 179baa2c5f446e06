from __future__ import annotations

from billing_core.core.application.cqrs import PagedResult, QueryHandler
from billing_core.core.application.handlers.plan_status_handlers import SynchronizerFactory
from billing_core.core.application.queries.customer_queries import GetCustomerQuery, ListCustomersQuery
from billing_core.core.domain.entities.customer_entity import CustomerEntity
from billing_core.core.domain.events.exceptions import EntityNotFoundError


class ListCustomersHandler(QueryHandler[ListCustomersQuery, PagedResult[CustomerEntity]]):
    """
    Lista titulares sincronizando antes o status de plano da página
    retornada, para a leitura nunca mostrar status defasado.
    """

    def __init__(self, synchronizer_factory: SynchronizerFactory):
        self._factory = synchronizer_factory

    def handle(self, query: ListCustomersQuery) -> PagedResult[CustomerEntity]:
        sync = self._factory(tenant_id=query.tenant_id)
        page = sync.customers.list(query.filtros, query.page, query.page_size)
        ids = [c.id for c in page.items]
        if not ids:
            return page

        with sync.customers.atomic():
            result = sync.sync_by_ids(ids)
        if not (result.suspended or result.activated):
            return page
        # status mudou durante a leitura: relê a mesma página
        return sync.customers.list(query.filtros, query.page, query.page_size)


class GetCustomerHandler(QueryHandler[GetCustomerQuery, CustomerEntity]):
    def __init__(self, synchronizer_factory: SynchronizerFactory):
        self._factory = synchronizer_factory

    def handle(self, query: GetCustomerQuery) -> CustomerEntity:
        sync = self._factory(tenant_id=query.tenant_id)
        with sync.customers.atomic():
            sync.sync_by_ids([query.customer_id])
        customer = sync.customers.find_by_id(query.customer_id)
        if customer is None:
            raise EntityNotFoundError("Customer", query.customer_id)
        return customer
