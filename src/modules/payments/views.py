"""Payment API views.

All routes are scoped to an order the caller can see; refunds are for
administrators only.  The client platform is read from the
``X-Client-Platform`` header.
"""

from __future__ import annotations

from uuid import UUID

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.accounts.models import is_admin_user
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.views import visible_orders_filter
from modules.payments.exceptions import (
    InvalidMobileMoneyNumber,
    InvalidPaymentStatus,
    PaymentIntentMismatch,
    PaymentOrderNotFound,
    PaymentProviderError,
    PaymentUnavailable,
)
from modules.payments.providers import PLATFORM_HEADER
from modules.payments.serializers import (
    CardConfirmationSerializer,
    MobileMoneySerializer,
    PaymentIntentSerializer,
    PaymentResultSerializer,
    PaymentStatusSerializer,
    RefundSerializer,
)
from modules.payments.services import PaymentService

NOT_FOUND = {"detail": "Order not found."}


class PaymentView(APIView):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = PaymentService(order_repository=OrderDjangoRepository())

    def _visible(self, order_id: UUID) -> bool:
        queryset = Order.objects.alive().filter(pk=order_id)
        condition = visible_orders_filter(self.request.user)
        if condition is not None:
            queryset = queryset.filter(condition)
        return queryset.exists()


class PaymentStatusView(PaymentView):
    def get(self, request: Request, order_id: UUID) -> Response:
        """GET /api/v1/payments/{order_id}/"""
        if not self._visible(order_id):
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        try:
            result = self._service.get_payment_status(str(order_id))
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentStatusSerializer(result).data)


class CardIntentView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/card-intent/"""
        if not self._visible(order_id):
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        try:
            intent = self._service.create_card_intent(
                order_id, request.headers.get(PLATFORM_HEADER)
            )
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except PaymentUnavailable as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except PaymentProviderError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        return Response(PaymentIntentSerializer(intent).data, status=status.HTTP_201_CREATED)


class CashPaymentView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/cash/"""
        if not self._visible(order_id):
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        try:
            result = self._service.process_cash(order_id)
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentResultSerializer(result).data)


class MobileMoneyPaymentView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/mobile-money/"""
        if not self._visible(order_id):
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        body = MobileMoneySerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            result = self._service.process_mobile_money(
                order_id, body.validated_data["phone_number"]
            )
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidMobileMoneyNumber as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentResultSerializer(result).data)


class RefundView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/refund/ (admin)"""
        if not is_admin_user(request.user):
            return Response(
                {"detail": "Only administrators can perform this action."},
                status=status.HTTP_403_FORBIDDEN,
            )
        body = RefundSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            result = self._service.refund(order_id, reason=body.validated_data["reason"])
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentResultSerializer(result).data)


class CardConfirmView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/card-confirm/"""
        if not self._visible(order_id):
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        body = CardConfirmationSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            result = self._service.confirm_card_payment(
                order_id,
                body.validated_data["intent_id"],
                body.validated_data["succeeded"],
            )
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except PaymentIntentMismatch as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        except InvalidPaymentStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(PaymentResultSerializer(result).data)


class MarkPaidView(PaymentView):
    def post(self, request: Request, order_id: UUID) -> Response:
        """POST /api/v1/payments/{order_id}/mark-paid/ (admin)"""
        if not is_admin_user(request.user):
            return Response(
                {"detail": "Only administrators can perform this action."},
                status=status.HTTP_403_FORBIDDEN,
            )
        try:
            result = self._service.mark_paid(order_id)
        except PaymentOrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidPaymentStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(PaymentResultSerializer(result).data)
