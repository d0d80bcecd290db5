"""Invoice API views."""

from __future__ import annotations

from django.db.models import Q
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.accounts.models import is_admin_user
from modules.core.pagination import StandardResultsSetPagination
from modules.errands.repositories.django_repository import ErrandDjangoRepository
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.receipts.exceptions import (
    InvoiceAlreadyExists,
    InvoiceNotFound,
    InvoicePermissionDenied,
    InvoiceSourceNotFound,
)
from modules.receipts.models import Invoice
from modules.receipts.repositories.django_repository import InvoiceDjangoRepository
from modules.receipts.serializers import (
    CreateErrandInvoiceSerializer,
    CreateOrderInvoiceSerializer,
    InvoiceListSerializer,
    InvoiceSerializer,
)
from modules.receipts.services import InvoiceService

NOT_FOUND = {"detail": "Invoice not found."}


class InvoiceViewSet(GenericViewSet):
    queryset = Invoice.objects.none()

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InvoiceService(
            invoice_repository=InvoiceDjangoRepository(),
            order_repository=OrderDjangoRepository(),
            errand_repository=ErrandDjangoRepository(),
        )

    def get_queryset(self):
        queryset = self._service.list_invoices().order_by("-invoice_date")
        user = self.request.user
        if not is_admin_user(user):
            queryset = queryset.filter(Q(customer=user) | Q(driver=user))
        return queryset

    def list(self, request: Request) -> Response:
        """GET /api/v1/invoices/"""
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(self.get_queryset(), request)
        return paginator.get_paginated_response(InvoiceListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/invoices/{pk}/"""
        try:
            invoice = self._service.get_invoice(pk or "")
        except InvoiceNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        if not self.get_queryset().filter(pk=invoice.pk).exists():
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(InvoiceSerializer(invoice).data)

    @action(detail=False, methods=["post"], url_path="from-order")
    def from_order(self, request: Request) -> Response:
        """POST /api/v1/invoices/from-order/"""
        body = CreateOrderInvoiceSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        return self._issue(
            self._service.create_from_order, body.validated_data["order_id"], request
        )

    @action(detail=False, methods=["post"], url_path="from-errand")
    def from_errand(self, request: Request) -> Response:
        """POST /api/v1/invoices/from-errand/ (admin)"""
        body = CreateErrandInvoiceSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        return self._issue(
            self._service.create_from_errand, body.validated_data["errand_id"], request
        )

    def _issue(self, create, source_id, request: Request) -> Response:
        try:
            invoice = create(source_id, request.user)
        except InvoiceSourceNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except InvoicePermissionDenied as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        except InvoiceAlreadyExists as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
