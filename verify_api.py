"""Smoke test against a running server with PAYMENT_PROVIDER=fake and a seeded catalog."""

import json
import time

import requests

from storefront.core.config import settings
from storefront.services.gateway.fake_adapter import sign_payload

BASE_URL = "http://localhost:8000/api/v1"
EMAIL = f"verify_{int(time.time())}@example.com"
PASSWORD = "SecurePassword123!"

def print_response(name, response):
    print(f"--- {name} ---")
    print(f"Status: {response.status_code}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)
    print("\n")

def run_verification():
    http = requests.Session()

    print("1. Registering User...")
    resp = http.post(f"{BASE_URL}/auth/register", json={"email": EMAIL, "password": PASSWORD})
    print_response("Register", resp)

    print("2. Logging in...")
    resp = http.post(f"{BASE_URL}/auth/token", data={"username": EMAIL, "password": PASSWORD})
    print_response("Login", resp)
    if resp.status_code != 200:
        print("Login failed, aborting.")
        return
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    print("3. Filling the cart...")
    http.post(f"{BASE_URL}/cart/items", params={"product_id": 1, "quantity": 2})
    resp = http.post(f"{BASE_URL}/cart/items", params={"product_id": 4})
    print_response("Cart", resp)
    cart = resp.json()

    print("4. Checking out...")
    resp = http.post(f"{BASE_URL}/checkout/", headers=headers, json={
        "address": {
            "full_name": "Test Buyer",
            "street": "1 Test Street",
            "city": "Berlin",
            "zip": "10115",
            "country": "DE",
        },
        "items": [
            {"name": line["name"], "price_cents": line["unit_price_cents"], "quantity": line["quantity"]}
            for line in cart["items"]
        ],
    })
    print_response("Checkout", resp)
    if resp.status_code != 200:
        print("Checkout failed, aborting.")
        return
    order_id = resp.json()["order_id"]

    print("5. Delivering the payment webhook twice...")
    body = json.dumps({
        "type": "checkout.session.completed",
        "data": {"object": {"client_reference_id": str(order_id)}},
    })
    for attempt in (1, 2):
        resp = http.post(
            f"{BASE_URL}/checkout/webhook",
            data=body,
            headers={"Signature": sign_payload(body, settings.PAYMENT_WEBHOOK_SECRET), "Content-Type": "application/json"},
        )
        print_response(f"Webhook #{attempt}", resp)

    print("6. Order history...")
    resp = http.get(f"{BASE_URL}/orders/", headers=headers)
    print_response("Orders", resp)

if __name__ == "__main__":
    run_verification()
