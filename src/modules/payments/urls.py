"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.payments.views import (
    CardConfirmView,
    CardIntentView,
    CashPaymentView,
    MarkPaidView,
    MobileMoneyPaymentView,
    PaymentStatusView,
    RefundView,
)

urlpatterns = [
    path("payments/<uuid:order_id>/", PaymentStatusView.as_view(), name="payment-status"),
    path(
        "payments/<uuid:order_id>/card-intent/",
        CardIntentView.as_view(),
        name="payment-card-intent",
    ),
    path(
        "payments/<uuid:order_id>/card-confirm/",
        CardConfirmView.as_view(),
        name="payment-card-confirm",
    ),
    path("payments/<uuid:order_id>/cash/", CashPaymentView.as_view(), name="payment-cash"),
    path(
        "payments/<uuid:order_id>/mobile-money/",
        MobileMoneyPaymentView.as_view(),
        name="payment-mobile-money",
    ),
    path("payments/<uuid:order_id>/mark-paid/", MarkPaidView.as_view(), name="payment-mark-paid"),
    path("payments/<uuid:order_id>/refund/", RefundView.as_view(), name="payment-refund"),
]
