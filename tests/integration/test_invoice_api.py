"""Integration tests for issuing and reading invoices."""

import pytest

from modules.errands.models import Errand
from modules.orders.models import Order
from modules.receipts.models import Invoice

pytestmark = pytest.mark.integration

INVOICES_URL = "/api/v1/invoices/"


@pytest.fixture()
def order_id(client_for, customer, store, product):
    response = client_for(customer).post(
        "/api/v1/orders/",
        {
            "store_id": str(store.id),
            "items": [{"product_id": str(product.id), "quantity": 2}],
        },
        format="json",
    )
    return response.json()["id"]


@pytest.fixture()
def errand_id(client_for, customer, errand_category, errand_subcategory):
    response = client_for(customer).post(
        "/api/v1/errands/",
        {
            "category_id": str(errand_category.id),
            "subcategory_id": str(errand_subcategory.id),
            "instructions": "Collect from the front desk",
        },
        format="json",
    )
    return response.json()["id"]


class TestOrderInvoice:
    def test_issue(self, client_for, customer, order_id):
        response = client_for(customer).post(
            f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json"
        )
        assert response.status_code == 201
        invoice = response.json()
        assert invoice["invoice_number"].startswith("INV-")
        assert invoice["order_id"] == order_id
        assert invoice["subtotal"] == "3200.00"
        assert invoice["service_fee"] == "1000.00"
        assert invoice["total"] == "4200.00"
        assert invoice["total_display"] == "GYD$4,200"
        assert invoice["payment_status"] == "Pending"
        assert invoice["notes"] == "Store: Demerara Kitchen"
        (line,) = invoice["items"]
        assert line["service_name"] == "Chicken Curry"
        assert line["quantity"] == 2
        assert line["total"] == "3000.00"

    def test_one_invoice_per_order(self, client_for, customer, order_id):
        client = client_for(customer)
        client.post(f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json")
        again = client.post(f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json")
        assert again.status_code == 409
        assert Invoice.objects.count() == 1

    def test_strangers_cannot_invoice(self, client_for, other_customer, order_id):
        response = client_for(other_customer).post(
            f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json"
        )
        assert response.status_code == 403

    def test_unknown_order(self, client_for, admin_user):
        response = client_for(admin_user).post(
            f"{INVOICES_URL}from-order/",
            {"order_id": "0192f0c4-aaaa-7bbb-8ccc-123456789abc"},
            format="json",
        )
        assert response.status_code == 404

    def test_paid_when_payment_completed(self, client_for, admin_user, order_id):
        Order.objects.filter(pk=order_id).update(payment_status="completed")
        response = client_for(admin_user).post(
            f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json"
        )
        assert response.json()["payment_status"] == "Paid"

    def test_deleted_order_cannot_be_invoiced(self, client_for, admin_user, order_id):
        Order.objects.filter(pk=order_id).delete()
        response = client_for(admin_user).post(
            f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json"
        )
        assert response.status_code == 404
        assert not Invoice.objects.exists()


class TestErrandInvoice:
    def test_admin_only(self, client_for, customer, errand_id):
        response = client_for(customer).post(
            f"{INVOICES_URL}from-errand/", {"errand_id": errand_id}, format="json"
        )
        assert response.status_code == 403

    def test_issue(self, client_for, admin_user, errand_id):
        response = client_for(admin_user).post(
            f"{INVOICES_URL}from-errand/", {"errand_id": errand_id}, format="json"
        )
        assert response.status_code == 201
        invoice = response.json()
        assert invoice["errand_id"] == errand_id
        assert invoice["total"] == "2000.00"
        assert invoice["service_fee"] == "0.00"
        assert invoice["notes"] == "Collect from the front desk"
        assert invoice["items"][0]["service_name"] == "Prescription Pickup"

    def test_deleted_errand_cannot_be_invoiced(self, client_for, admin_user, errand_id):
        Errand.objects.filter(pk=errand_id).delete()
        response = client_for(admin_user).post(
            f"{INVOICES_URL}from-errand/", {"errand_id": errand_id}, format="json"
        )
        assert response.status_code == 404


class TestReadInvoices:
    def test_list_and_retrieve_are_scoped(self, client_for, customer, other_customer, order_id):
        issued = client_for(customer).post(
            f"{INVOICES_URL}from-order/", {"order_id": order_id}, format="json"
        ).json()

        assert client_for(customer).get(INVOICES_URL).json()["count"] == 1
        assert client_for(other_customer).get(INVOICES_URL).json()["count"] == 0
        assert client_for(customer).get(f"{INVOICES_URL}{issued['id']}/").status_code == 200
        assert client_for(other_customer).get(f"{INVOICES_URL}{issued['id']}/").status_code == 404

    def test_unknown_invoice(self, client_for, admin_user):
        assert client_for(admin_user).get(f"{INVOICES_URL}nope/").status_code == 404
