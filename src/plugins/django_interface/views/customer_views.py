from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from billing_core.adapters.config.composition_root import container as core_container
from billing_core.adapters.context.tenant_context import require_current_tenant
from billing_core.core.application.queries.customer_queries import GetCustomerQuery, ListCustomersQuery
from plugins.django_interface.serializers.billing_serializers import CustomerSerializer

core_query_bus = core_container.query_bus()

MAX_PAGE_SIZE = 200


class CustomerListView(APIView):
    """Lista titulares; o status de plano da página é sincronizado antes da leitura."""
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        tenant_id = require_current_tenant()
        params = request.query_params
        try:
            page = max(1, int(params.get("page", 1)))
            page_size = max(1, min(int(params.get("page_size", 50)), MAX_PAGE_SIZE))
        except ValueError:
            return Response({"detail": "Paginação inválida"}, status=status.HTTP_400_BAD_REQUEST)

        filtros = {k: params[k] for k in ("plan_status", "search") if params.get(k)}
        result = core_query_bus.dispatch(
            ListCustomersQuery(tenant_id=tenant_id, filtros=filtros, page=page, page_size=page_size)
        )
        return Response(
            {
                "results": CustomerSerializer(result.items, many=True).data,
                "total": result.total,
                "page": result.page,
                "page_size": result.page_size,
                "total_pages": result.total_pages,
            }
        )


class CustomerDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, customer_id: int):
        tenant_id = require_current_tenant()
        customer = core_query_bus.dispatch(GetCustomerQuery(tenant_id=tenant_id, customer_id=customer_id))
        return Response(CustomerSerializer(customer).data)
