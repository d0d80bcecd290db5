"""Errand API views.

Domain exceptions are caught and translated into HTTP status codes; the
view never swallows generic exceptions.
"""

from __future__ import annotations

from uuid import UUID

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.accounts.models import Role, get_profile, is_admin_user, is_fulfiller
from modules.core.pagination import StandardResultsSetPagination
from modules.errands.dtos import CreateErrandDTO
from modules.errands.exceptions import (
    CategoryNotFound,
    ErrandAlreadyAssigned,
    ErrandNotFound,
    InvalidErrandStatus,
    InvalidSchedule,
    NotAssignedRunner,
    OutsideServiceArea,
    SubcategoryNotFound,
)
from modules.errands.filters import ErrandFilter
from modules.errands.models import Errand, ErrandCategory
from modules.errands.repositories.django_repository import ErrandDjangoRepository
from modules.errands.serializers import (
    CreateErrandSerializer,
    ErrandCategorySerializer,
    ErrandListSerializer,
    ErrandSerializer,
    ErrandSubcategorySerializer,
    ErrandTransitionResultSerializer,
)
from modules.errands.services import ErrandService
from modules.orders.serializers import RejectSerializer
from modules.receipts.builders import build_errand_receipt
from modules.receipts.serializers import ReceiptSerializer

NOT_FOUND = {"detail": "Errand not found."}
ADMIN_ONLY = {"detail": "Only administrators can perform this action."}
RUNNERS_ONLY = {"detail": "Only runners and administrators can perform this action."}


def visible_errands_filter(user) -> Q | None:
    """``None`` means no restriction (administrators)."""
    if is_admin_user(user):
        return None
    condition = Q(customer=user) | Q(runner=user)
    profile = get_profile(user)
    if profile and profile.role == Role.DRIVER:
        condition |= Q(runner__isnull=True)
    return condition


class ErrandViewSet(GenericViewSet):
    queryset = Errand.objects.none()
    filterset_class = ErrandFilter
    search_fields = ["errand_number", "pickup_address", "dropoff_address"]
    ordering_fields = ["created_at", "total_price", "status", "scheduled_time"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ErrandService(errand_repository=ErrandDjangoRepository())

    def get_throttles(self) -> list[BaseThrottle]:
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "errand_creation"
        elif self.action in {"accept", "reject", "advance"}:
            throttle_scope = "status_update"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def get_queryset(self):
        queryset = self._service.list_errands()
        condition = visible_errands_filter(self.request.user)
        if condition is not None:
            queryset = queryset.filter(condition)
        return queryset

    def _get_visible(self, pk: str | None) -> Errand:
        errand = self._service.get_errand(pk or "")
        condition = visible_errands_filter(self.request.user)
        if condition is not None and not Errand.objects.filter(condition, pk=errand.pk).exists():
            raise ErrandNotFound(f"Errand {pk} not found.")
        return errand

    # ------------------------------------------------------------------
    # Create / Read
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/errands/"""
        serializer = CreateErrandSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            dto = CreateErrandDTO(customer_id=request.user.pk, **serializer.validated_data)
        except PydanticValidationError as exc:
            return Response(
                {"detail": exc.errors(include_url=False, include_context=False)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            errand = self._service.create_errand(dto)
        except (CategoryNotFound, SubcategoryNotFound) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_404_NOT_FOUND)
        except (InvalidSchedule, OutsideServiceArea) as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(ErrandSerializer(errand).data, status=status.HTTP_201_CREATED)

    def list(self, request: Request) -> Response:
        """GET /api/v1/errands/"""
        queryset = self.filter_queryset(self.get_queryset())
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(ErrandListSerializer(page, many=True).data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/errands/{pk}/"""
        try:
            errand = self._get_visible(pk)
        except ErrandNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ErrandSerializer(errand).data)

    @action(detail=True, methods=["get"])
    def receipt(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/errands/{pk}/receipt/"""
        try:
            errand = self._get_visible(pk)
        except ErrandNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        return Response(ReceiptSerializer(build_errand_receipt(errand)).data)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def accept(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/errands/{pk}/accept/ (assigns the caller as runner)"""
        if not is_fulfiller(request.user):
            return Response(RUNNERS_ONLY, status=status.HTTP_403_FORBIDDEN)
        try:
            errand = self._service.accept(UUID(pk), request.user.pk)
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ErrandNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ErrandAlreadyAssigned as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        return Response(ErrandSerializer(errand).data)

    @action(detail=True, methods=["post"])
    def reject(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/errands/{pk}/reject/ (admin)"""
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
        except ErrandNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except InvalidErrandStatus as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(ErrandTransitionResultSerializer(result).data)

    @action(detail=True, methods=["post"])
    def advance(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/errands/{pk}/advance/"""
        if not is_fulfiller(request.user):
            return Response(RUNNERS_ONLY, status=status.HTTP_403_FORBIDDEN)
        try:
            result = self._service.advance_status(UUID(pk), request.user.pk)
        except ValueError:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except ErrandNotFound:
            return Response(NOT_FOUND, status=status.HTTP_404_NOT_FOUND)
        except NotAssignedRunner as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(ErrandTransitionResultSerializer(result).data)


class ErrandCategoryViewSet(ListModelMixin, GenericViewSet):
    """Read-only errand catalogue."""

    queryset = ErrandCategory.objects.none()
    serializer_class = ErrandCategorySerializer
    pagination_class = None

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ErrandService(errand_repository=ErrandDjangoRepository())

    def get_queryset(self):
        return self._service.list_categories()

    @action(detail=True, methods=["get"])
    def subcategories(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/errand-categories/{pk}/subcategories/"""
        try:
            subcategories = self._service.list_subcategories(pk)
        except CategoryNotFound:
            return Response(
                {"detail": "Category not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(ErrandSubcategorySerializer(subcategories, many=True).data)
