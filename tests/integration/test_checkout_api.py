import pytest

from storefront.checkout.models import EmbeddedCheckout


def test_hosted_checkout_redirects_to_gateway(client, gateway):
    client.post("/api/v1/cart/items", json={"id": "p1", "quantity": 2})

    res = client.get("/stripe/checkout", follow_redirects=False)

    assert res.status_code == 303
    assert res.headers["location"] == "https://checkout.stripe.test/c/pay/cs_test_1"
    (request,) = gateway.requests
    assert request.ui_mode == "hosted"
    assert request.line_items[0].unit_amount_minor == 1000
    assert request.line_items[0].quantity == 2
    assert request.return_targets.success_url == "https://shop.test/checkout/success?session_id={CHECKOUT_SESSION_ID}"


def test_hosted_checkout_with_empty_cart(client, gateway):
    res = client.get("/stripe/checkout", follow_redirects=False)
    assert res.status_code == 400
    assert res.json()["detail"] == "Cart is empty."
    assert gateway.requests == []


def test_embedded_endpoint_refused_in_hosted_mode(client):
    client.post("/api/v1/cart/items", json={"id": "p1", "quantity": 1})
    res = client.post("/stripe/checkout/embedded")
    assert res.status_code == 400


class TestEmbeddedMode:
    @pytest.fixture
    def checkout_config(self):
        return EmbeddedCheckout(return_url="https://shop.test/checkout/return")

    def test_embedded_checkout_returns_client_secret(self, client, gateway):
        client.post("/api/v1/cart/items", json={"id": "p2", "quantity": 3})

        res = client.post("/stripe/checkout/embedded")

        assert res.status_code == 200
        assert res.json() == {"clientSecret": "cs_test_1_secret_abc"}
        assert gateway.requests[0].return_targets.return_url == "https://shop.test/checkout/return?session_id={CHECKOUT_SESSION_ID}"

    def test_hosted_endpoint_refused_in_embedded_mode(self, client, gateway):
        client.post("/api/v1/cart/items", json={"id": "p2", "quantity": 1})
        res = client.get("/stripe/checkout", follow_redirects=False)
        assert res.status_code == 400
        assert gateway.requests == []
