"""
Copy-and-open handoff for marketplaces: the plain text block a seller pastes
into the marketplace's own form, and the page to open for it.
"""

from typing import Callable, Dict, List
from urllib.parse import quote_plus

from quickflip.models.listing import (
    API_MARKETPLACES,
    AmazonListing,
    DepopListing,
    EbayListing,
    EtsyListing,
    FacebookListing,
    ListingHandoff,
    Marketplace,
    MarketplaceListing,
    MercariListing,
    PoshmarkListing,
    StockXListing,
)
from quickflip.utils.listing_mapper import name_words, stockx_condition_score, stockx_tags

SELL_URLS: Dict[Marketplace, str] = {
    Marketplace.EBAY: "https://www.ebay.com/sl/sell",
    Marketplace.AMAZON: "https://sellercentral.amazon.com/hz/inventory/add-products/search",
    Marketplace.ETSY: "https://www.etsy.com/your/shops/me/tools/listings/create",
    Marketplace.FACEBOOK: "https://www.facebook.com/marketplace/create/item",
    Marketplace.STOCKX: "https://stockx.com/sell",
    Marketplace.MERCARI: "https://www.mercari.com/sell/",
    Marketplace.POSHMARK: "https://poshmark.com/create-listing",
    Marketplace.DEPOP: "https://www.depop.com/products/create/",
}

SEARCH_URLS: Dict[Marketplace, str] = {
    Marketplace.EBAY: "https://www.ebay.com/sch/i.html?_nkw={query}",
    Marketplace.AMAZON: "https://www.amazon.com/s?k={query}",
    Marketplace.ETSY: "https://www.etsy.com/search?q={query}",
    Marketplace.FACEBOOK: "https://www.facebook.com/marketplace/search/?query={query}",
    Marketplace.STOCKX: "https://stockx.com/search?s={query}",
    Marketplace.MERCARI: "https://www.mercari.com/search/?keyword={query}",
    Marketplace.POSHMARK: "https://poshmark.com/search?query={query}",
    Marketplace.DEPOP: "https://www.depop.com/search/?q={query}",
}

INSTRUCTIONS: Dict[Marketplace, List[str]] = {
    Marketplace.EBAY: [
        "Go to eBay.com and click \"Sell\"",
        "Upload your saved photos",
        "Copy and paste the details above",
        "Set your payment and shipping preferences",
        "Review and list",
    ],
    Marketplace.AMAZON: [
        "Log into Amazon Seller Central",
        "Go to \"Add a Product\"",
        "Search for an existing listing or create a new one",
        "Upload photos and copy the details above",
        "Set price and inventory",
        "Review and submit for approval",
    ],
    Marketplace.ETSY: [
        "Open Shop Manager and click \"Add a listing\"",
        "Upload your photos",
        "Copy the title and description above",
        "Add the tags from the listing above",
        "Set price and shipping, then publish",
    ],
    Marketplace.FACEBOOK: [
        "Open Facebook and go to Marketplace",
        "Click \"Create New Listing\"",
        "Upload your saved photos",
        "Copy and paste the details above",
        "Set your location and category",
        "Publish the listing",
    ],
    Marketplace.STOCKX: [
        "Search StockX for your item",
        "If found, click \"Sell\" on the product page",
        "Select condition and set your Ask price",
        "Otherwise use \"Sell Something New\" and paste the details above",
    ],
    Marketplace.MERCARI: [
        "Open the Mercari app or website and tap \"Sell\"",
        "Upload your saved photos",
        "Copy and paste the details above",
        "Select category and condition",
        "Set price and shipping, then list",
    ],
    Marketplace.POSHMARK: [
        "Open the Poshmark app and tap \"+\"",
        "Upload your photos",
        "Copy the title and description above",
        "Select the category, size and price",
        "Share to your closet",
    ],
    Marketplace.DEPOP: [
        "Open the Depop app and tap the camera icon",
        "Upload your photos",
        "Copy the description above and add hashtags",
        "Set price and shipping, then post",
    ],
}


def money(value: float) -> str:
    return f"${value:.2f}"


def hashtag(text: str) -> str:
    return "#" + "".join(ch for ch in text if ch.isalnum())


def _ebay_text(listing: EbayListing) -> str:
    shipping = "Free" if listing.shipping_cost == 0 else money(listing.shipping_cost)
    returns = f"{listing.return_period_days} day returns" if listing.returns_accepted else "No returns"
    lines = [
        f"Title: {listing.title}",
        "",
        f"Condition: {listing.condition}",
        "",
        "Description:",
        listing.description,
        "",
        f"Starting Price: {money(listing.starting_price)}",
        f"Buy It Now Price: {money(listing.price)}",
        "",
        f"Shipping: {shipping}",
        f"Duration: {listing.duration_days} day{'' if listing.duration_days == 1 else 's'}",
        f"Returns: {returns}",
        "",
        f"Category: {listing.category}",
    ]
    lines.extend(f"{key}: {value}" for key, value in listing.item_specifics.items())
    return "\n".join(lines)


def _amazon_text(listing: AmazonListing) -> str:
    key_feature = listing.description.split(". ")[0].strip() if listing.description else "High quality item"
    return "\n".join([
        f"Product Title: {listing.title}",
        f"Brand: {listing.brand}",
        "",
        f"Condition: {listing.condition}",
        "",
        "Bullet Points:",
        f"- {listing.condition} condition with full functionality",
        f"- {key_feature}",
        "- Authentic product",
        "",
        "Description:",
        listing.description,
        "",
        f"Price: {money(listing.price)}",
        f"Search Terms: {listing.search_terms}",
    ])


def _etsy_text(listing: EtsyListing) -> str:
    return "\n".join([
        f"{listing.title} | {listing.condition} Condition",
        "",
        f"CONDITION: {listing.condition}",
        "",
        "DESCRIPTION:",
        listing.description,
        "",
        f"PRICE: {money(listing.price)}",
        "",
        f"TAGS: {', '.join(listing.tags)}",
    ])


def _facebook_text(listing: FacebookListing) -> str:
    return "\n".join([
        f"{listing.title} - {money(listing.price)}",
        "",
        f"{listing.condition} condition" if listing.condition else "",
        "",
        listing.description,
        "",
        hashtag(listing.category),
    ])


def _stockx_text(listing: StockXListing) -> str:
    return "\n".join([
        f"Product: {listing.product_name}",
        f"Colorway: {listing.colorway}",
        f"SKU: {listing.sku}",
        "",
        f"Condition: {stockx_condition_score(listing.condition)}/10",
        "",
        "Description:",
        listing.description,
        "",
        f"Ask Price: {money(listing.price)}",
        f"Last Sale: {money(listing.last_sale_price)}  Lowest Ask: {money(listing.lowest_ask)}  "
        f"Highest Bid: {money(listing.highest_bid)}",
        "",
        "Tags: " + ", ".join(stockx_tags(listing)),
    ])


def _mercari_text(listing: MercariListing) -> str:
    return "\n".join([
        listing.title,
        "",
        f"Brand: {listing.brand}" if listing.brand else "",
        f"Condition: {listing.condition}",
        "",
        listing.description,
        "",
        f"Price: {money(listing.price)} (suggested {money(listing.suggested_min_price)} - "
        f"{money(listing.suggested_max_price)})",
        "",
        hashtag(listing.category),
    ])


def _poshmark_text(listing: PoshmarkListing) -> str:
    tags = " ".join(hashtag(word) for word in name_words(listing.title)[:2])
    return "\n".join([
        listing.title,
        "",
        f"Brand: {listing.brand}",
        f"Size: {listing.size}",
        f"Condition: {listing.condition}",
        "",
        listing.description,
        "",
        f"Price: {money(listing.price)}",
        "",
        f"#poshmarkfinds {tags}".strip(),
    ])


def _depop_text(listing: DepopListing) -> str:
    tags = " ".join(hashtag(word) for word in name_words(listing.title)[:2])
    return "\n".join([
        listing.title,
        "",
        f"condition: {listing.condition.lower()}",
        f"size: {listing.size}",
        "",
        listing.description,
        "",
        f"price: {money(listing.price)}",
        "",
        f"#depop #{listing.style} {tags} #secondhand".replace("  ", " "),
    ])


TEXT_BUILDERS: Dict[Marketplace, Callable] = {
    Marketplace.EBAY: _ebay_text,
    Marketplace.AMAZON: _amazon_text,
    Marketplace.ETSY: _etsy_text,
    Marketplace.FACEBOOK: _facebook_text,
    Marketplace.STOCKX: _stockx_text,
    Marketplace.MERCARI: _mercari_text,
    Marketplace.POSHMARK: _poshmark_text,
    Marketplace.DEPOP: _depop_text,
}


def listing_text(listing: MarketplaceListing) -> str:
    return TEXT_BUILDERS[Marketplace(listing.marketplace)](listing)


def handoff_for(listing: MarketplaceListing) -> ListingHandoff:
    marketplace = Marketplace(listing.marketplace)
    return ListingHandoff(
        marketplace=marketplace,
        method="api" if marketplace in API_MARKETPLACES else "clipboard",
        listing_text=listing_text(listing),
        url=SELL_URLS[marketplace],
        instructions=INSTRUCTIONS[marketplace],
    )


def search_url(marketplace: Marketplace, item_name: str) -> str:
    return SEARCH_URLS[Marketplace(marketplace)].format(query=quote_plus(item_name or ""))
