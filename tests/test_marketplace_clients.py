import pytest
import requests

from quickflip.models.listing import EbayListing, Marketplace
from quickflip.utils.marketplace_clients import (
    EbayClient,
    MarketplaceAPIError,
    ebay_category_id,
    ebay_condition,
    fetch_ebay_policy_ids,
    fetch_etsy_shop_id,
)

POLICIES = {"fulfillment": "f-1", "payment": "p-1", "return": "r-1"}


@pytest.mark.parametrize("condition,expected", [
    ("New", "NEW"),
    ("Like New", "LIKE_NEW"),
    ("Used - like new, no box", "LIKE_NEW"),
    ("Excellent condition", "USED_EXCELLENT"),
    ("Very Good", "USED_VERY_GOOD"),
    ("Fair", "USED_ACCEPTABLE"),
    ("Poor - for parts", "FOR_PARTS_OR_NOT_WORKING"),
    ("", "USED_GOOD"),
])
def test_ebay_condition(condition, expected):
    assert ebay_condition(condition) == expected


@pytest.mark.parametrize("category,expected", [
    ("Electronics > Cell Phones & Accessories > Headphones", "112529"),
    ("Books & Magazines > Books", "261186"),
    ("Toys & Hobbies", "99"),
])
def test_ebay_category_id(category, expected):
    assert ebay_category_id(category) == expected


def test_policy_lookup_tolerates_network_errors(monkeypatch):
    def unreachable(url, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("requests.get", unreachable)

    assert fetch_ebay_policy_ids("token") == {"fulfillment": None, "payment": None, "return": None}


def test_policy_lookup_uses_sandbox_host(http):
    http.add("GET", "/sell/account/v1/", payload={})

    fetch_ebay_policy_ids("token", sandbox=True)

    assert len(http.calls) == 3
    assert all(call.url.startswith("https://api.sandbox.ebay.com/") for call in http.calls)


def test_etsy_shop_lookup_failure(http):
    http.add("GET", "/users/me", status_code=401, text="unauthorized")
    assert fetch_etsy_shop_id("token", "key") is None


def test_ebay_listing_needs_a_location(http):
    http.add("GET", "/sell/inventory/v1/location", payload={"locations": []})

    with pytest.raises(MarketplaceAPIError) as excinfo:
        EbayClient("token").create_listing(EbayListing(title="Lamp"), [], POLICIES)

    assert excinfo.value.marketplace == Marketplace.EBAY
    assert "merchant location" in excinfo.value.body
    assert http.find("PUT", "/inventory_item/") == []


def test_ebay_auction_offer(http):
    http.add("GET", "/sell/inventory/v1/location", payload={"locations": [{"merchantLocationKey": "home"}]})
    http.add("PUT", "/sell/inventory/v1/inventory_item/", status_code=204)
    http.add("POST", "/sell/inventory/v1/offer", status_code=201, payload={"offerId": "o-1"})
    http.add("POST", "/sell/inventory/v1/offer/o-1/publish", payload={"listingId": "555"})
    listing = EbayListing(title="Lamp", price=40.0, starting_price=9.99, listing_type="auction", duration_days=5)

    result = EbayClient("token", sandbox=True).create_listing(listing, [], POLICIES)

    assert result == {"listing_id": "555", "listing_url": "https://www.sandbox.ebay.com/itm/555"}
    offer = http.find("POST", "/offer")[0]
    assert offer.json["format"] == "AUCTION"
    assert offer.json["listingDuration"] == "DAYS_5"
    assert offer.json["pricingSummary"]["auctionStartPrice"] == {"currency": "USD", "value": "9.99"}
    [put] = http.find("PUT", "/inventory_item/")
    assert put.json["product"]["aspects"]["Brand"] == ["Unbranded"]


def test_non_json_error_body_is_kept_as_text(http):
    http.add("GET", "/sell/inventory/v1/location", payload={"locations": [{"merchantLocationKey": "home"}]})
    http.add("PUT", "/sell/inventory/v1/inventory_item/", status_code=503, text="Service Unavailable")

    with pytest.raises(MarketplaceAPIError) as excinfo:
        EbayClient("token").create_listing(EbayListing(title="Lamp"), [], POLICIES)

    assert excinfo.value.status_code == 503
    assert excinfo.value.body == "Service Unavailable"
