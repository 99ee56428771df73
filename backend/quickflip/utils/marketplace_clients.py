"""
Thin listing-creation clients for the marketplaces with a seller API.

Each call is a single attempt. Failures come back as MarketplaceAPIError with
the marketplace's own status code and response body, for the caller to show
to the seller as-is.
"""

import json
import logging
import uuid
from typing import Dict, List, Optional

import requests

from quickflip.models.listing import EbayListing, EtsyListing, Marketplace, StockXListing

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30

EBAY_CONDITIONS = {
    "new": "NEW",
    "brand new": "NEW",
    "new with tags": "NEW_WITH_TAGS",
    "new other": "NEW_OTHER",
    "like new": "LIKE_NEW",
    "excellent": "USED_EXCELLENT",
    "very good": "USED_VERY_GOOD",
    "good": "USED_GOOD",
    "used": "USED_GOOD",
    "fair": "USED_ACCEPTABLE",
    "acceptable": "USED_ACCEPTABLE",
    "poor": "FOR_PARTS_OR_NOT_WORKING",
    "for parts": "FOR_PARTS_OR_NOT_WORKING",
}

# eBay leaf category ids keyed by a word in the category path; first hit wins
EBAY_CATEGORY_IDS = [
    ("athletic shoes", "15709"),
    ("shoes", "63889"),
    ("headphones", "112529"),
    ("cell phones", "9355"),
    ("video game", "139971"),
    ("books", "261186"),
    ("clothing", "11450"),
    ("collectibles", "1"),
    ("home", "11700"),
]
EBAY_DEFAULT_CATEGORY_ID = "99"  # Everything Else > Other

ETSY_TAXONOMY_IDS = {
    "vintage": 69150425,
    "handmade": 69150467,
}


class MarketplaceAPIError(Exception):
    def __init__(self, marketplace: Marketplace, status_code: int, body):
        self.marketplace = marketplace
        self.status_code = status_code
        self.body = body
        super().__init__(f"{marketplace.value} API request failed ({status_code}): {body}")


def _body(response):
    try:
        return response.json()
    except ValueError:
        return response.text


def _check(marketplace: Marketplace, response, ok=(200, 201)):
    if response.status_code not in ok:
        body = _body(response)
        logger.error("%s API error %s: %s", marketplace.value, response.status_code, body)
        raise MarketplaceAPIError(marketplace, response.status_code, body)
    return response


def ebay_api_base(sandbox: bool = False) -> str:
    return "https://api.sandbox.ebay.com" if sandbox else "https://api.ebay.com"


def ebay_condition(condition: str) -> str:
    lowered = (condition or "").strip().lower()
    if lowered in EBAY_CONDITIONS:
        return EBAY_CONDITIONS[lowered]
    for phrase in sorted(EBAY_CONDITIONS, key=len, reverse=True):
        if phrase in lowered:
            return EBAY_CONDITIONS[phrase]
    return "USED_GOOD"


def ebay_category_id(category: str) -> str:
    lowered = (category or "").lower()
    for keyword, category_id in EBAY_CATEGORY_IDS:
        if keyword in lowered:
            return category_id
    return EBAY_DEFAULT_CATEGORY_ID


def fetch_ebay_policy_ids(token: str, sandbox: bool = False) -> Dict[str, Optional[str]]:
    """
    First fulfillment, payment and return policy ids on the seller's account.
    A policy type the seller hasn't set up comes back as None.
    """
    headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
    base = ebay_api_base(sandbox)
    kinds = {
        "fulfillment": ("fulfillment_policy", "fulfillmentPolicies", "fulfillmentPolicyId"),
        "payment": ("payment_policy", "paymentPolicies", "paymentPolicyId"),
        "return": ("return_policy", "returnPolicies", "returnPolicyId"),
    }
    policy_ids = {}
    for kind, (path, list_key, id_key) in kinds.items():
        policy_ids[kind] = None
        try:
            r = requests.get(f"{base}/sell/account/v1/{path}?marketplace_id=EBAY_US",
                             headers=headers, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as e:
            logger.warning("Could not fetch eBay %s policies: %s", kind, e)
            continue
        if r.status_code == 200:
            policies = r.json().get(list_key, [])
            if policies:
                policy_ids[kind] = policies[0][id_key]
            else:
                logger.info("No eBay %s policies found for seller", kind)
    return policy_ids


def fetch_etsy_shop_id(token: str, api_key: str) -> Optional[str]:
    headers = {"Authorization": f"Bearer {token}", "x-api-key": api_key}
    try:
        r = requests.get("https://api.etsy.com/v3/application/users/me",
                         headers=headers, timeout=REQUEST_TIMEOUT)
    except requests.RequestException as e:
        logger.warning("Could not fetch Etsy shop: %s", e)
        return None
    if r.status_code != 200:
        logger.warning("Etsy users/me returned %s: %s", r.status_code, r.text)
        return None
    shop_id = r.json().get("shop_id")
    return str(shop_id) if shop_id else None


class EbayClient:
    """Sell Inventory API: inventory item, then offer, then publish."""

    def __init__(self, token: str, sandbox: bool = False):
        self.token = token
        self.base = ebay_api_base(sandbox)
        self.sandbox = sandbox

    @property
    def headers(self):
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "X-EBAY-C-MARKETPLACE-ID": "EBAY_US",
            "Content-Language": "en-US",
        }

    def first_location_key(self) -> Optional[str]:
        r = requests.get(f"{self.base}/sell/inventory/v1/location", headers=self.headers, timeout=REQUEST_TIMEOUT)
        if r.status_code != 200:
            return None
        locations = r.json().get("locations", [])
        for location in locations:
            if location.get("location", {}).get("address", {}).get("postalCode"):
                return location["merchantLocationKey"]
        return locations[0]["merchantLocationKey"] if locations else None

    def create_listing(self, listing: EbayListing, image_urls: List[str], policies: Dict[str, Optional[str]]) -> dict:
        missing = [kind for kind in ("fulfillment", "payment", "return") if not policies.get(kind)]
        if missing:
            raise MarketplaceAPIError(
                Marketplace.EBAY, 400,
                f"Missing required eBay business policies: {', '.join(missing)}. "
                "Please create these policies in your eBay Seller Hub first.",
            )
        location_key = self.first_location_key()
        if not location_key:
            raise MarketplaceAPIError(
                Marketplace.EBAY, 400,
                "eBay merchant location required. Create a location in your eBay Seller Hub first.",
            )

        sku = str(uuid.uuid4())
        brand = listing.item_specifics.get("Brand") or "Unbranded"
        aspects = {key: [value] for key, value in listing.item_specifics.items()}
        aspects.setdefault("Brand", [brand])

        inventory_item = {
            "product": {
                "title": listing.title,
                "description": listing.description,
                "brand": brand,
                "aspects": aspects,
                "imageUrls": image_urls,
            },
            "condition": ebay_condition(listing.condition),
            "availability": {"shipToLocationAvailability": {"quantity": 1}},
        }
        logger.debug("Creating eBay inventory item %s: %s", sku, json.dumps(inventory_item))
        _check(Marketplace.EBAY, requests.put(
            f"{self.base}/sell/inventory/v1/inventory_item/{sku}",
            json=inventory_item, headers=self.headers, timeout=REQUEST_TIMEOUT,
        ), ok=(200, 201, 204))

        offer = {
            "sku": sku,
            "marketplaceId": "EBAY_US",
            "format": "AUCTION" if listing.listing_type == "auction" else "FIXED_PRICE",
            "availableQuantity": 1,
            "categoryId": ebay_category_id(listing.category),
            "listingDescription": listing.description,
            "listingDuration": f"DAYS_{listing.duration_days}" if listing.listing_type == "auction" else "GTC",
            "listingPolicies": {
                "fulfillmentPolicyId": policies["fulfillment"],
                "paymentPolicyId": policies["payment"],
                "returnPolicyId": policies["return"],
            },
            "pricingSummary": {"price": {"currency": "USD", "value": f"{listing.price:.2f}"}},
            "merchantLocationKey": location_key,
        }
        if listing.listing_type == "auction":
            offer["pricingSummary"]["auctionStartPrice"] = {"currency": "USD", "value": f"{listing.starting_price:.2f}"}
        r = _check(Marketplace.EBAY, requests.post(
            f"{self.base}/sell/inventory/v1/offer", json=offer, headers=self.headers, timeout=REQUEST_TIMEOUT,
        ))
        offer_id = r.json()["offerId"]

        r = _check(Marketplace.EBAY, requests.post(
            f"{self.base}/sell/inventory/v1/offer/{offer_id}/publish", headers=self.headers, timeout=REQUEST_TIMEOUT,
        ), ok=(200,))
        listing_id = r.json().get("listingId", offer_id)
        site = "https://www.sandbox.ebay.com" if self.sandbox else "https://www.ebay.com"
        logger.info("Published eBay offer %s as listing %s", offer_id, listing_id)
        return {"listing_id": listing_id, "listing_url": f"{site}/itm/{listing_id}"}


class EtsyClient:
    base = "https://api.etsy.com/v3/application"

    def __init__(self, token: str, api_key: str, shop_id: str):
        self.token = token
        self.api_key = api_key
        self.shop_id = shop_id

    def create_listing(self, listing: EtsyListing, image_urls: List[str]) -> dict:
        payload = {
            "quantity": 1,
            "title": listing.title,
            "description": listing.description,
            "price": round(listing.price, 2),
            "who_made": listing.who_made,
            "when_made": listing.when_made,
            "taxonomy_id": ETSY_TAXONOMY_IDS.get(listing.category, ETSY_TAXONOMY_IDS["handmade"]),
            "tags": listing.tags[:13],
            "materials": listing.materials,
        }
        headers = {"Authorization": f"Bearer {self.token}", "x-api-key": self.api_key}
        r = _check(Marketplace.ETSY, requests.post(
            f"{self.base}/shops/{self.shop_id}/listings", json=payload, headers=headers, timeout=REQUEST_TIMEOUT,
        ))
        listing_id = str(r.json()["listing_id"])
        logger.info("Created Etsy draft listing %s", listing_id)
        return {"listing_id": listing_id, "listing_url": f"https://www.etsy.com/listing/{listing_id}"}


class StockXClient:
    base = "https://api.stockx.com/v2"

    def __init__(self, token: str, api_key: str):
        self.token = token
        self.api_key = api_key

    def create_listing(self, listing: StockXListing) -> dict:
        if not listing.variant_id:
            raise MarketplaceAPIError(
                Marketplace.STOCKX, 400,
                "StockX asks need a catalog variant_id; search the StockX catalog for this product first.",
            )
        payload = {
            "amount": f"{listing.price:.0f}",
            "variantId": listing.variant_id,
            "currencyCode": "USD",
            "inventoryType": "STANDARD",
        }
        headers = {"Authorization": f"Bearer {self.token}", "x-api-key": self.api_key}
        r = _check(Marketplace.STOCKX, requests.post(
            f"{self.base}/selling/listings", json=payload, headers=headers, timeout=REQUEST_TIMEOUT,
        ))
        data = r.json()
        listing_id = data.get("listingId", "")
        logger.info("Placed StockX ask %s (%s)", listing_id, data.get("operationStatus"))
        return {"listing_id": listing_id, "listing_url": None, "status": data.get("operationStatus", "posted")}
