"""
HTTP surface: status codes, error bodies and response shapes.
"""
from urllib.parse import parse_qs, urlparse

import pytest

from apps.addressbook.services import soft_delete_address
from apps.payguard.defaults import seed_payment_methods
from apps.shipstream.models import ShippingMethod
from apps.shopcore.models import Review

pytestmark = pytest.mark.django_db

ADDRESS_BODY = {
    "type": "both",
    "title": "Home",
    "firstName": "Ayse",
    "lastName": "Yilmaz",
    "phone": "0532 123 4567",
    "addressLine1": "Bagdat Caddesi 12",
    "city": "Istanbul",
    "state": "Kadikoy",
    "postalCode": "34710",
}


class TestAddressEndpoints:

    def test_missing_email_is_401(self, api_client):
        response = api_client.get('/api/addresses/')
        assert response.status_code == 401
        assert response.json()['message'] == "User email required"

    def test_unknown_user_is_404(self, api_client):
        response = api_client.post('/api/addresses/', {**ADDRESS_BODY, "userEmail": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json()['error'] is True

    def test_create_list_update_delete(self, api_client, user):
        created = api_client.post('/api/addresses/', {**ADDRESS_BODY, "userEmail": user.email})
        assert created.status_code == 201
        body = created.json()
        assert body['is_default'] is True
        assert body['full_name'] == "Ayse Yilmaz"

        listed = api_client.get('/api/addresses/', {"userEmail": user.email})
        assert [a['id'] for a in listed.json()] == [body['id']]

        updated = api_client.put(
            f"/api/addresses/{body['id']}/", {"userEmail": user.email, "city": "Ankara"}
        )
        assert updated.status_code == 200
        assert updated.json()['city'] == "Ankara"
        assert updated.json()['postal_code'] == "34710"

        deleted = api_client.delete(f"/api/addresses/{body['id']}/?userEmail={user.email}")
        assert deleted.status_code == 200
        assert api_client.get('/api/addresses/', {"userEmail": user.email}).json() == []

    def test_invalid_postal_code_is_400(self, api_client, user):
        response = api_client.post(
            '/api/addresses/', {**ADDRESS_BODY, "postalCode": "123", "userEmail": user.email}
        )
        assert response.status_code == 400
        assert response.json()['message'].startswith("postalCode")

    def test_missing_required_field_is_400(self, api_client, user):
        body = {key: value for key, value in ADDRESS_BODY.items() if key != 'city'}
        response = api_client.post('/api/addresses/', {**body, "userEmail": user.email})
        assert response.status_code == 400

    def test_unknown_address_is_404(self, api_client, user):
        response = api_client.delete(
            f"/api/addresses/00000000-0000-0000-0000-000000000000/?userEmail={user.email}"
        )
        assert response.status_code == 404


class TestShippingEndpoints:

    @pytest.mark.parametrize('query', [{}, {"orderValue": "0"}, {"orderValue": "-5"}, {"orderValue": "abc"}])
    def test_invalid_order_value_is_400(self, api_client, query):
        response = api_client.get('/api/shipping/', query)
        assert response.status_code == 400

    def test_seed_then_list(self, api_client):
        seeded = api_client.post('/api/shipping/', {"action": "seed"})
        assert seeded.status_code == 201
        assert seeded.json()['count'] == 4

        response = api_client.get('/api/shipping/', {"orderValue": "250", "weight": "10"})
        assert response.status_code == 200
        methods = response.json()['shipping_methods']
        assert methods[0]['type'] == 'standard'
        assert methods[0]['cost'] == 44.99

    def test_create_validates_rules(self, api_client):
        response = api_client.post('/api/shipping/', {
            "name": "Broken",
            "description": "Bad weight rule",
            "type": "standard",
            "base_price": "10.00",
            "estimated_days_min": 1,
            "estimated_days_max": 2,
            "weight_rules": [{"additional_price": 5}],
        })
        assert response.status_code == 400

    def test_create_rejects_malformed_cutoff(self, api_client):
        response = api_client.post('/api/shipping/', {
            "name": "Late",
            "description": "Bad cutoff",
            "type": "standard",
            "base_price": "10.00",
            "estimated_days_min": 1,
            "estimated_days_max": 2,
            "cutoff_time": "noon",
        })
        assert response.status_code == 400
        assert response.json()['message'].startswith("cutoff_time")
        assert not ShippingMethod.objects.exists()

    def test_create_and_calculate(self, api_client):
        created = api_client.post('/api/shipping/', {
            "name": "Standard Delivery",
            "description": "Regular delivery",
            "type": "standard",
            "base_price": "29.99",
            "free_shipping_threshold": "300",
            "estimated_days_min": 3,
            "estimated_days_max": 7,
            "weight_rules": [
                {"max_weight": 5, "additional_price": 0},
                {"max_weight": 15, "additional_price": 15},
            ],
        })
        assert created.status_code == 201
        method_id = created.json()['id']

        response = api_client.post('/api/shipping/calculate/', {
            "methodId": method_id, "orderValue": 250, "weight": 10, "region": "Istanbul",
        })
        assert response.status_code == 200
        assert response.json()['cost'] == 44.99

        free = api_client.post('/api/shipping/calculate/', {"methodId": method_id, "orderValue": 300})
        assert free.json()['cost'] == 0
        assert free.json()['is_free'] is True

    def test_calculate_inactive_is_400(self, api_client, shipping_method):
        ShippingMethod.objects.filter(pk=shipping_method.pk).update(is_active=False)
        response = api_client.post('/api/shipping/calculate/', {
            "methodId": str(shipping_method.pk), "orderValue": 100,
        })
        assert response.status_code == 400
        assert response.json()['message'] == "Shipping method is not active"

    def test_calculate_unknown_is_404(self, api_client):
        response = api_client.post('/api/shipping/calculate/', {
            "methodId": "00000000-0000-0000-0000-000000000000", "orderValue": 100,
        })
        assert response.status_code == 404


class TestPaymentEndpoints:

    def test_invalid_amount_is_400(self, api_client):
        assert api_client.get('/api/payment/methods/').status_code == 400

    def test_fees_listed(self, api_client):
        seed_payment_methods()
        response = api_client.get('/api/payment/methods/', {"orderAmount": "1000"})
        assert response.status_code == 200
        fees = {m['type']: m['processing_fee'] for m in response.json()['payment_methods']}
        assert fees == {
            'credit-card': 25.0,
            'cash-on-delivery': 5.0,
            'bank-transfer': -30.0,
            'digital-wallet': 15.0,
        }


class TestProductAndReviewEndpoints:

    def test_product_filters(self, api_client, product, cheap_product):
        response = api_client.get('/api/products/', {"maxPrice": "60"})
        assert [p['name'] for p in response.json()] == [cheap_product.name]

        assert api_client.get('/api/products/', {"minPrice": "x"}).status_code == 400

    def test_create_product(self, api_client):
        response = api_client.post('/api/products/', {
            "name": "Desk Lamp",
            "description": "LED, dimmable",
            "price": "349.90",
            "image": "https://example.com/lamp.png",
            "category": "home",
            "stock": 12,
        })
        assert response.status_code == 201
        assert response.json()['rating'] == 0

    def test_review_lifecycle(self, api_client, user, other_user, product):
        body = {
            "userEmail": user.email,
            "productId": str(product.pk),
            "rating": 4,
            "title": "Good",
            "comment": "Solid sound.",
        }
        created = api_client.post('/api/reviews/', body)
        assert created.status_code == 201

        duplicate = api_client.post('/api/reviews/', body)
        assert duplicate.status_code == 400
        assert duplicate.json()['message'] == "You have already reviewed this product"

        review_id = created.json()['id']
        vote = api_client.post(
            f"/api/reviews/{review_id}/vote/", {"userEmail": other_user.email, "vote": "helpful"}
        )
        assert vote.json() == {"helpful": 1, "not_helpful": 0}

        listed = api_client.get('/api/reviews/', {"productId": str(product.pk)})
        assert listed.json()['pagination']['total_count'] == 1
        assert listed.json()['reviews'][0]['user']['name'] == user.name

        rating = api_client.get(f"/api/products/{product.pk}/rating/")
        assert rating.json()['average_rating'] == 4.0
        assert rating.json()['rating_breakdown']['4'] == 1

    def test_review_rating_out_of_range(self, api_client, user, product):
        response = api_client.post('/api/reviews/', {
            "userEmail": user.email, "productId": str(product.pk),
            "rating": 6, "title": "x", "comment": "y",
        })
        assert response.status_code == 400
        assert not Review.objects.exists()

    def test_vote_requires_email(self, api_client, user, product):
        response = api_client.post('/api/reviews/00000000-0000-0000-0000-000000000000/vote/', {"vote": "helpful"})
        assert response.status_code == 401

    def test_invalid_vote_is_400(self, api_client, user):
        response = api_client.post(
            '/api/reviews/00000000-0000-0000-0000-000000000000/vote/',
            {"userEmail": user.email, "vote": "love-it"},
        )
        assert response.status_code == 400

    def test_bad_product_filter_is_400(self, api_client):
        assert api_client.get('/api/reviews/', {"productId": "nope"}).status_code == 400


class TestCartAndCheckoutEndpoints:

    def test_anonymous_add_redirects_to_login(self, api_client, product):
        response = api_client.post('/api/cart/items/', {
            "productId": str(product.pk), "returnPath": f"/products/{product.pk}",
        })
        assert response.status_code == 401
        login = urlparse(response.json()['login_url'])
        assert parse_qs(login.query)['callbackUrl'] == [f"/products/{product.pk}"]

    def test_cart_operations(self, api_client, user, product, cheap_product):
        for item in (product, product, cheap_product):
            response = api_client.post('/api/cart/items/', {"userEmail": user.email, "productId": str(item.pk)})
            assert response.status_code == 200

        cart = response.json()
        assert cart['total'] == 250.0
        assert cart['item_count'] == 3
        assert cart['is_open'] is True

        response = api_client.patch(
            f"/api/cart/items/{product.pk}/", {"userEmail": user.email, "quantity": 0}
        )
        assert [i['product_id'] for i in response.json()['items']] == [str(cheap_product.pk)]

        response = api_client.post('/api/cart/toggle/', {"userEmail": user.email})
        assert response.json()['is_open'] is False

        response = api_client.delete(f"/api/cart/?userEmail={user.email}")
        assert response.json()['items'] == []
        assert response.json()['is_open'] is False

    def test_checkout_flow(self, api_client, user, address, product, card_method, shipping_method):
        email = {"userEmail": user.email}
        api_client.post('/api/cart/items/', {**email, "productId": str(product.pk)})

        started = api_client.post('/api/checkout/start/', email)
        assert started.status_code == 201
        assert started.json()['address_id'] == str(address.pk)

        assert api_client.post('/api/checkout/back/', email).status_code == 400
        assert api_client.post('/api/checkout/next/', email).json()['current_step'] == 'shipping'
        assert api_client.post('/api/checkout/next/', email).status_code == 400

        shipped = api_client.post('/api/checkout/shipping/', {**email, "methodId": str(shipping_method.pk)})
        assert shipped.json()['shipping_cost'] == 29.99

        api_client.post('/api/checkout/next/', email)
        api_client.post('/api/checkout/next/', email)
        paid = api_client.post('/api/checkout/payment/', {**email, "methodId": str(card_method.pk)})
        # 2.5% of 129.99
        assert paid.json()['payment_fee'] == 3.25
        assert paid.json()['total'] == 133.24

        done = api_client.post('/api/checkout/complete/', email)
        assert done.status_code == 200
        assert done.json()['confirmation'].startswith('ORD-')
        assert api_client.get('/api/cart/', email).json()['items'] == []

    def test_checkout_viewable_after_address_deleted(self, api_client, user, address, product, shipping_method):
        email = {"userEmail": user.email}
        api_client.post('/api/cart/items/', {**email, "productId": str(product.pk)})
        api_client.post('/api/checkout/start/', email)
        api_client.post('/api/checkout/next/', email)
        api_client.post('/api/checkout/shipping/', {**email, "methodId": str(shipping_method.pk)})

        soft_delete_address(user, address.pk)

        response = api_client.get('/api/checkout/', email)
        assert response.status_code == 200
        assert response.json()['current_step'] == 'address'
        assert response.json()['address_id'] is None
        assert response.json()['can_proceed'] is False

    def test_complete_refused_when_cart_changed(self, api_client, user, address, product, card_method, shipping_method):
        email = {"userEmail": user.email}
        for _ in range(3):
            api_client.post('/api/cart/items/', {**email, "productId": str(product.pk)})
        api_client.post('/api/checkout/start/', email)
        api_client.post('/api/checkout/next/', email)
        shipped = api_client.post('/api/checkout/shipping/', {**email, "methodId": str(shipping_method.pk)})
        assert shipped.json()['shipping_cost'] == 0
        api_client.post('/api/checkout/next/', email)
        api_client.post('/api/checkout/next/', email)
        api_client.post('/api/checkout/payment/', {**email, "methodId": str(card_method.pk)})

        api_client.patch(f"/api/cart/items/{product.pk}/", {**email, "quantity": 1})

        response = api_client.post('/api/checkout/complete/', email)
        assert response.status_code == 400
        assert response.json()['details']['step'] == 'shipping'
        assert api_client.get('/api/cart/', email).json()['item_count'] == 1

    def test_checkout_with_empty_cart(self, api_client, user):
        response = api_client.post('/api/checkout/start/', {"userEmail": user.email})
        assert response.status_code == 400
        assert response.json()['message'] == "Your cart is empty"


def test_health(api_client):
    response = api_client.get('/api/health/')
    assert response.status_code == 200
    assert response.json()['database'] == 'healthy'
    assert response.json()['cache'] == 'healthy'
