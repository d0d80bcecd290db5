"""Store API views (read-only catalogue)."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.stores.exceptions import StoreNotFound
from modules.stores.filters import StoreFilter
from modules.stores.models import Store
from modules.stores.repositories.django_repository import StoreDjangoRepository
from modules.stores.serializers import ProductSerializer, StoreSerializer
from modules.stores.services import StoreService


class StoreViewSet(ListModelMixin, GenericViewSet):
    filterset_class = StoreFilter
    search_fields = ["name", "description"]
    ordering_fields = ["name", "created_at"]
    ordering = ["name"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Store.objects.none()
    serializer_class = StoreSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = StoreService(repository=StoreDjangoRepository())

    def get_queryset(self):
        return self._service.list_stores()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/stores/{pk}/"""
        try:
            store = self._service.get_store(pk)
        except StoreNotFound:
            return Response(
                {"detail": "Store not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        return Response(StoreSerializer(store).data)

    @action(detail=True, methods=["get"])
    def products(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/stores/{pk}/products/"""
        try:
            products = self._service.list_products(pk)
        except StoreNotFound:
            return Response(
                {"detail": "Store not found."},
                status=status.HTTP_404_NOT_FOUND,
            )
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(products, request)
        return paginator.get_paginated_response(ProductSerializer(page, many=True).data)
