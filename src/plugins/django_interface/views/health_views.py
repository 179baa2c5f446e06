from django.db import connections
from django.db.utils import OperationalError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthCheckView(APIView):
    """
    Rota GET /api/healthz/: 200 se a API e o banco default respondem.
    """
    permission_classes = []
    authentication_classes = []

    def get(self, request):
        try:
            connections["default"].ensure_connection()
        except OperationalError:
            return Response({"status": "degraded", "database": "down"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        return Response({"status": "ok"}, status=status.HTTP_200_OK)
