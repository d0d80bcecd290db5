"""Errand URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.errands.views import ErrandCategoryViewSet, ErrandViewSet

router = DefaultRouter(trailing_slash=True)
router.register("errands", ErrandViewSet, basename="errand")
router.register("errand-categories", ErrandCategoryViewSet, basename="errand-category")

urlpatterns = router.urls
