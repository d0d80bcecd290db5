"""Pricing URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.pricing.views import DeliveryQuoteView, ErrandQuoteView, ServiceAreaView

urlpatterns = [
    path("pricing/errand-quote/", ErrandQuoteView.as_view(), name="errand-quote"),
    path("pricing/delivery-quote/", DeliveryQuoteView.as_view(), name="delivery-quote"),
    path("pricing/service-area/", ServiceAreaView.as_view(), name="service-area"),
]
