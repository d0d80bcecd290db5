"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.
Domain exceptions are caught and translated into appropriate
HTTP status codes; the view never swallows generic exceptions.
"""

from __future__ import annotations

from uuid import UUID

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.models import Role, get_profile, is_admin_user, is_fulfiller
from modules.core.pagination import StandardResultsSetPagination
from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import (
    InvalidOrderStatus,
    NotAssignedActor,
    OrderAlreadyAssigned,
    OrderNotFound,
    OutsideServiceArea,
)
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    RejectSerializer,
    TransitionResultSerializer,
)
from modules.orders.services import OrderService
from modules.receipts.builders import build_order_receipt
from modules.receipts.serializers import ReceiptSerializer
from modules.stores.exceptions import (
    ProductNotFound,
    ProductUnavailable,
    StoreClosed,
    StoreNotFound,
)
from modules.stores.repositories.django_repository import StoreDjangoRepository

NOT_FOUND = {"detail": "Order not found."}
ADMIN_ONLY = {"detail": "Only administrators can perform this action."}
DRIVERS_ONLY = {"detail": "Only drivers and administrators can perform this action."}


def visible_orders_filter(user) -> Q | None:
    """``None`` means no restriction (administrators)."""
    if is_admin_user(user):
        return None
    condition = Q(customer=user) | Q(driver=user)
    profile = get_profile(user)
    if profile and profile.role == Role.DRIVER:
        condition |= Q(driver__isnull=True)
    return condition


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories.  Does **not** extend
    ``ModelViewSet``; all ORM access goes through the service/repository
    layer.
    """

    queryset = Order.objects.none()
    filterset_class = OrderFilter
    search_fields = ["order_number", "delivery_address"]
    ordering_fields = ["created_at", "total", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._repo = OrderDjangoRepository()
        self._service = OrderService(
            order_repository=self._repo,
            store_repository=StoreDjangoRepository(),
        )

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"accept", "confirm", "reject", "advance"}:
            throttle_scope = "status_update"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        queryset = self._service.list_orders()
        condition = visible_orders_filter(self.request.user)
        if condition is not None:
            queryset = queryset.filter(condition)
        return queryset

    def _get_visible(self, pk: str | None) -> Order:
        order = self._service.get_order(pk or "")
        condition = visible_orders_filter(self.request.user)
        if condition is not None and not Order.objects.filter(condition, pk=order.pk).exists():
            raise OrderNotFound(f"Order {pk} not found.")
        return order

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Supports idempotency via the ``Idempotency-Key`` header.
        """
        create_serializer = CreateOrderSerializer(data=request.data)
        create_serializer.is_valid(raise_exception=True)
        data = create_serializer.validated_data

        try:
            dto = CreateOrderDTO(
                customer_id=request.user.pk,
                store_id=data["store_id"],
                items=[
                    CreateOrderItemDTO(product_id=item["product_id"], quantity=item["quantity"])
                    for item in data["items"]
                ],
                payment_method=data["payment_method"],
                delivery_address=data["delivery_address"],
                city=data["city"],
                latitude=data["latitude"],
                longitude=data["longitude"],
                delivery_notes=data["delivery_notes"],
                customer_phone=data["customer_phone"],
                idempotency_key=request.headers.get("Idempotency-Key"),
            )
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            order = self._service.create_order(dto)
        except StoreNotFound:
            return Response({"detail": "Store not found."}, status=status.HTTP_404_NOT_FOUND)
        except ProductNotFound as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (StoreClosed, ProductUnavailable, OutsideServiceArea) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/"""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        try:
            order = self._get_visible(pk)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["get"])
    def receipt(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/receipt/"""
        try:
            order = self._get_visible(pk)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ReceiptSerializer(build_order_receipt(order)).data)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/accept/ (assigns the caller as driver)"""
        if not is_fulfiller(request.user):
            return Response(DRIVERS_ONLY, status=status.HTTP_403_FORBIDDEN)
        try:
            order = self._service.accept(UUID(pk), request.user.pk)
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except OrderAlreadyAssigned as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(OrderSerializer(order).data)

    @action(detail=True, methods=["post"])
    def confirm(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm/ (admin)"""
        if not is_admin_user(request.user):
            return Response(ADMIN_ONLY, status=status.HTTP_403_FORBIDDEN)
        try:
            result = self._service.confirm(UUID(pk), request.user.pk)
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(TransitionResultSerializer(result).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/reject/ (admin)"""
        if not is_admin_user(request.user):
            return Response(ADMIN_ONLY, status=status.HTTP_403_FORBIDDEN)
        body = RejectSerializer(data=request.data)
        body.is_valid(raise_exception=True)
        try:
            result = self._service.reject(
                UUID(pk), request.user.pk, reason=body.validated_data["reason"]
            )
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidOrderStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(TransitionResultSerializer(result).data)

    @action(detail=True, methods=["post"])
    def advance(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/advance/

        ``changed: false`` with a message when the order has nowhere to go.
        """
        if not is_fulfiller(request.user):
            return Response(DRIVERS_ONLY, status=status.HTTP_403_FORBIDDEN)
        try:
            result = self._service.advance_status(UUID(pk), request.user.pk)
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except OrderNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except NotAssignedActor as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(TransitionResultSerializer(result).data)
