"""
Turn a ScannedItemAnalysis into the listing shape one marketplace expects.

Every heuristic here is keyword matching over the item name (and, where the
vision model supplied them, its attributes). The rules live in the tables at
the top of the module so they can be read and tested without the mapping code.
"""

import re
import zlib
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from quickflip.models.analysis import ScannedItemAnalysis
from quickflip.models.listing import (
    AmazonListing,
    DepopListing,
    EbayListing,
    EtsyListing,
    FacebookListing,
    Marketplace,
    MarketplaceListing,
    MercariListing,
    PoshmarkListing,
    StockXListing,
)
from quickflip.utils.item_parser import parse_price_range

KeywordTable = Sequence[Tuple[str, Tuple[str, ...]]]

EBAY_TITLE_LIMIT = 80
FACEBOOK_TITLE_LIMIT = 80
ETSY_TAG_LIMIT = 13
AMAZON_SEARCH_TERM_LIMIT = 20

# Base price used when the estimated value has no dollar amount in it.
FALLBACK_PRICES: Dict[Marketplace, float] = {
    Marketplace.EBAY: 0.0,
    Marketplace.AMAZON: 25.0,
    Marketplace.ETSY: 25.0,
    Marketplace.FACEBOOK: 25.0,
    Marketplace.STOCKX: 150.0,
    Marketplace.MERCARI: 50.0,
    Marketplace.POSHMARK: 25.0,
    Marketplace.DEPOP: 20.0,
}

# (min, max) suggested price as multiples of the base price
PRICE_MULTIPLIERS: Dict[Marketplace, Tuple[float, float]] = {
    Marketplace.MERCARI: (0.8, 1.2),
    Marketplace.POSHMARK: (0.7, 1.5),
    # younger audience, bargain hunting
    Marketplace.DEPOP: (0.6, 1.3),
}

# StockX (lowest ask, highest bid) around the last sale
STOCKX_SPREAD = (1.1, 0.9)

PRICE_FLOORS: Dict[Marketplace, float] = {
    Marketplace.FACEBOOK: 1.0,
    Marketplace.ETSY: 1.0,
}

BRANDS: Dict[Marketplace, Tuple[List[str], str]] = {
    Marketplace.AMAZON: (
        ["Apple", "Samsung", "Nike", "Sony", "Microsoft", "Google", "Amazon", "Dell", "HP", "Canon", "Nikon"],
        "Generic",
    ),
    Marketplace.MERCARI: (
        ["Nike", "Adidas", "Apple", "Samsung", "Coach", "Gucci", "Supreme", "Jordan"],
        "",
    ),
    Marketplace.POSHMARK: (
        ["Zara", "H&M", "Nike", "Adidas", "Levi's", "Coach", "Gucci", "Prada",
         "Louis Vuitton", "Chanel", "Dior", "Burberry", "Ralph Lauren", "Calvin Klein",
         "Tommy Hilfiger", "Michael Kors", "Kate Spade", "Tory Burch", "Free People",
         "Anthropologie", "J.Crew", "Banana Republic", "Ann Taylor", "Loft"],
        "Boutique",
    ),
}

MERCARI_CATEGORIES: KeywordTable = [
    ("Electronics", ("phone", "ipad", "laptop", "gaming", "headphones")),
    ("Clothing", ("shirt", "dress", "pants", "jacket")),
    ("Shoes", ("shoe", "sneaker", "boot")),
    ("Accessories", ("bag", "purse", "wallet", "watch")),
    ("Home & Garden", ("home", "decor", "kitchen")),
    ("Beauty", ("makeup", "skincare", "perfume")),
    ("Collectibles", ("card", "collectible", "vintage")),
    ("Books", ("book",)),
    ("Sports", ("sport", "fitness")),
]

POSHMARK_CATEGORIES: KeywordTable = [
    ("Dresses", ("dress", "gown")),
    ("Tops", ("top", "blouse", "shirt", "tee", "tank")),
    ("Pants", ("pants", "jean", "trouser", "legging")),
    ("Skirts", ("skirt",)),
    ("Jackets & Coats", ("jacket", "blazer", "coat", "cardigan")),
    ("Shoes", ("shoe", "boot", "sneaker", "heel", "sandal")),
    ("Bags", ("bag", "purse", "clutch", "tote")),
    ("Jewelry", ("jewelry", "necklace", "earring", "bracelet", "ring")),
    ("Accessories", ("watch", "scarf", "belt", "hat", "sunglasses")),
    ("Swim", ("swim", "bikini", "bathing")),
]

DEPOP_CATEGORIES: KeywordTable = [
    ("Tops", ("top", "shirt", "blouse", "crop", "tank", "tee")),
    ("Dresses", ("dress", "midi", "maxi")),
    ("Bottoms", ("jeans", "pants", "trouser", "cargo", "wide leg")),
    ("Skirts", ("skirt", "mini", "pleated")),
    ("Outerwear", ("jacket", "blazer", "coat", "bomber")),
    ("Shoes", ("shoes", "boots", "sneakers", "platform", "doc martens")),
    ("Bags", ("bag", "purse", "backpack", "tote", "crossbody")),
    ("Jewelry", ("jewelry", "necklace", "earrings", "rings", "bracelet")),
    ("Accessories", ("hat", "scarf", "belt", "sunglasses", "hair")),
    ("Home", ("home", "decor", "poster", "plant")),
]

# matched against the analysis category, not the item name
FACEBOOK_CATEGORIES: KeywordTable = [
    ("Electronics", ("electronics", "phone", "computer")),
    ("Clothing & Accessories", ("clothing", "fashion")),
    ("Home & Garden", ("home", "furniture")),
    ("Vehicles", ("car", "vehicle")),
    ("Sports", ("sport", "fitness")),
    ("Family", ("baby", "kid")),
]

STOCKX_CATEGORIES: KeywordTable = [
    ("Sneakers", ("jordan", "nike", "adidas", "yeezy", "sneaker", "shoe")),
    ("Streetwear", ("supreme", "bape", "off-white", "shirt", "hoodie", "jacket")),
    ("Electronics", ("watch", "airpods", "iphone", "gaming", "console")),
    ("Collectibles", ("card", "pokemon", "collectible")),
]

DEPOP_STYLES = ["vintage", "y2k", "grunge", "cottagecore", "indie", "alt", "preppy",
                "streetwear", "boho", "minimalist", "gothic", "kawaii", "retro", "punk"]

DEPOP_STYLE_HINTS: KeywordTable = [
    ("vintage", ("band", "tour")),
    ("y2k", ("90s", "2000s")),
    ("cottagecore", ("floral", "prairie")),
    ("grunge", ("black", "leather")),
]

# Checked in order, so the more specific phrases come first.
MERCARI_CONDITIONS: KeywordTable = [
    ("Like New", ("like new",)),
    ("New", ("new",)),
    ("Good", ("good", "used", "worn")),
    ("Fair", ("fair",)),
    ("Poor", ("poor", "for parts")),
]

POSHMARK_CONDITIONS: KeywordTable = [
    ("New with tags", ("new with tags", "nwt")),
    ("New without tags", ("new without tags", "nwot")),
    ("Like new", ("like new",)),
    ("Good", ("good",)),
    ("Fair", ("fair", "poor")),
]

DEPOP_CONDITIONS: KeywordTable = [
    ("Brand new", ("brand new", "never worn")),
    ("Like new", ("barely worn", "like new")),
    ("Good", ("good condition", "well maintained", "good")),
    ("Well loved", ("worn", "used", "fair", "poor")),
    ("Vintage condition", ("vintage", "distressed")),
]

POSHMARK_SIZES = ["XXS", "XS", "S", "M", "L", "XL", "XXL", "XXXL",
                  "0", "2", "4", "6", "8", "10", "12", "14", "16", "18", "20",
                  "6.5", "7", "7.5", "8.5", "9", "9.5", "10.5", "11", "11.5"]

DEPOP_SIZES = ["US 6", "US 7", "US 8", "US 9", "US 10", "US 11", "US 12",
               "UK 6", "UK 8", "UK 10", "UK 12", "UK 14", "UK 16",
               "XXS", "XS", "S", "M", "L", "XL", "XXL",
               "6", "7", "8", "9", "10", "11", "12", "13", "14", "16", "18", "20"]

STOCKX_COLORS = ["Black", "White", "Red", "Blue", "Green", "Gray", "Navy", "Brown"]
STOCKX_BRAND_TAGS = ["Nike", "Jordan", "Adidas", "Yeezy", "Supreme"]
STOCKX_CONDITION_SCORES = {"new": 10, "like new": 9, "good": 8, "fair": 6, "poor": 4}

AMAZON_RESTRICTED_CATEGORIES = ["electronics", "beauty", "grocery", "automotive", "clothing"]

ETSY_STOP_WORDS = {"with", "from", "this", "that", "and", "the", "for"}


# --- table helpers -----------------------------------------------------------

def first_match(text: str, table: KeywordTable, default: Optional[str]) -> Optional[str]:
    lowered = (text or "").lower()
    for label, keywords in table:
        if any(keyword in lowered for keyword in keywords):
            return label
    return default


def condition_from(analysis: ScannedItemAnalysis, table: KeywordTable, default: str) -> str:
    """Read the condition field first; only fall back to hints in the item name."""
    return first_match(analysis.condition, table, None) or first_match(analysis.item_name, table, default)


def find_brand(text: str, brands: Iterable[str], default: str) -> str:
    lowered = (text or "").lower()
    for brand in brands:
        if brand.lower() in lowered:
            return brand
    return default


def find_size(text: str, sizes: Iterable[str], default: str) -> str:
    """First size token that appears as a whole word in text."""
    for size in sizes:
        if re.search(rf"(?<![\w.]){re.escape(size)}(?![\w.])", text or ""):
            return size
    return default


def attribute(analysis: ScannedItemAnalysis, *names: str) -> Optional[str]:
    """Case-insensitive attribute lookup, skipping placeholder values."""
    wanted = {name.lower() for name in names}
    for key, value in analysis.attributes.items():
        if key.lower() in wanted and value and value.lower() not in ("unknown", "not specified", "n/a"):
            return value
    return None


def base_price(analysis: ScannedItemAnalysis, marketplace: Marketplace) -> float:
    price_range = parse_price_range(analysis.estimated_value_range)
    price = price_range[0] if price_range else FALLBACK_PRICES[marketplace]
    return max(price, PRICE_FLOORS.get(marketplace, 0.0))


def suggested_range(price: float, marketplace: Marketplace) -> Tuple[float, float]:
    low, high = PRICE_MULTIPLIERS[marketplace]
    return round(price * low, 2), round(price * high, 2)


def clean_title(name: str) -> str:
    return re.sub(r"\s+", " ", name or "").strip()


def name_words(name: str, min_length: int = 3) -> List[str]:
    return [word for word in clean_title(name).lower().split(" ") if len(word) >= min_length]


def _unique(items: Iterable[str]) -> List[str]:
    seen = []
    for item in items:
        if item and item not in seen:
            seen.append(item)
    return seen


# --- per-marketplace builders ------------------------------------------------

def _ebay(analysis: ScannedItemAnalysis) -> EbayListing:
    price_range = parse_price_range(analysis.estimated_value_range)
    starting, buy_it_now = price_range if price_range else (0.99, FALLBACK_PRICES[Marketplace.EBAY])
    return EbayListing(
        title=clean_title(analysis.item_name)[:EBAY_TITLE_LIMIT],
        description=analysis.description,
        category=analysis.category,
        condition=analysis.condition or "Good",
        price=buy_it_now,
        starting_price=starting,
        item_specifics=dict(analysis.attributes),
    )


def _amazon(analysis: ScannedItemAnalysis) -> AmazonListing:
    brand_names, default_brand = BRANDS[Marketplace.AMAZON]
    return AmazonListing(
        title=clean_title(analysis.item_name),
        description=analysis.description,
        category=analysis.category,
        condition=analysis.condition,
        price=base_price(analysis, Marketplace.AMAZON),
        brand=attribute(analysis, "Brand") or find_brand(analysis.item_name, brand_names, default_brand),
        upc=attribute(analysis, "UPC", "ISBN") or "",
        search_terms=amazon_search_terms(analysis),
        requires_approval=any(word in analysis.category.lower() for word in AMAZON_RESTRICTED_CATEGORIES),
    )


def amazon_search_terms(analysis: ScannedItemAnalysis) -> str:
    terms = name_words(analysis.item_name)
    if analysis.category:
        terms.append(analysis.category.lower())
    if "new" in analysis.condition.lower() and "like new" not in analysis.condition.lower():
        terms.extend(["brand new", "unopened", "sealed"])
    else:
        terms.extend(["used", "pre-owned", "second hand"])
    return " ".join(_unique(terms)[:AMAZON_SEARCH_TERM_LIMIT])


def _etsy(analysis: ScannedItemAnalysis) -> EtsyListing:
    vintage = "vintage" in f"{analysis.category} {analysis.item_name}".lower()
    tags = (["vintage"] if vintage else []) + [
        word for word in name_words(analysis.item_name, 4) if word not in ETSY_STOP_WORDS
    ]
    material = attribute(analysis, "Material")
    return EtsyListing(
        title=clean_title(analysis.item_name),
        description=analysis.description,
        category="vintage" if vintage else "handmade",
        condition=analysis.condition,
        price=base_price(analysis, Marketplace.ETSY),
        tags=[tag[:20] for tag in _unique(tags)][:ETSY_TAG_LIMIT],
        materials=[material] if material else [],
        who_made="someone_else" if vintage else "i_did",
        when_made="before_2006" if vintage else "2020_2025",
    )


def _facebook(analysis: ScannedItemAnalysis) -> FacebookListing:
    title = clean_title(analysis.item_name)
    if len(title) > FACEBOOK_TITLE_LIMIT:
        title = title[:FACEBOOK_TITLE_LIMIT - 3] + "..."
    return FacebookListing(
        title=title,
        description=analysis.description or "Great condition! Message me with any questions.",
        category=first_match(analysis.category, FACEBOOK_CATEGORIES, "Other"),
        condition=analysis.condition,
        price=base_price(analysis, Marketplace.FACEBOOK),
    )


def stockx_sku(name: str) -> str:
    """Placeholder style code: first three letters plus three digits derived from the name."""
    prefix = re.sub(r"[^A-Za-z0-9]", "", name or "")[:3].upper() or "QFX"
    digits = 100 + zlib.crc32(clean_title(name).lower().encode("utf-8")) % 900
    return f"{prefix}-{digits}"


def _stockx(analysis: ScannedItemAnalysis) -> StockXListing:
    name = clean_title(analysis.item_name)
    last_sale = base_price(analysis, Marketplace.STOCKX)
    ask_multiple, bid_multiple = STOCKX_SPREAD
    colorway = attribute(analysis, "Colorway", "Color") or find_brand(name, STOCKX_COLORS, "Multi-Color")
    return StockXListing(
        title=name,
        description=analysis.description,
        category=first_match(name, STOCKX_CATEGORIES, "Other"),
        condition=analysis.condition,
        price=last_sale,
        product_name=name,
        colorway=colorway,
        sku=attribute(analysis, "Style Code", "SKU") or stockx_sku(name),
        last_sale_price=last_sale,
        lowest_ask=round(last_sale * ask_multiple, 2),
        highest_bid=round(last_sale * bid_multiple, 2),
    )


def _mercari(analysis: ScannedItemAnalysis) -> MercariListing:
    brand_names, default_brand = BRANDS[Marketplace.MERCARI]
    price = base_price(analysis, Marketplace.MERCARI)
    low, high = suggested_range(price, Marketplace.MERCARI)
    return MercariListing(
        title=clean_title(analysis.item_name),
        description=analysis.description,
        category=first_match(analysis.item_name, MERCARI_CATEGORIES, "Other"),
        condition=condition_from(analysis, MERCARI_CONDITIONS, "Like New"),
        price=price,
        brand=attribute(analysis, "Brand") or find_brand(analysis.item_name, brand_names, default_brand),
        suggested_min_price=low,
        suggested_max_price=high,
    )


def _poshmark(analysis: ScannedItemAnalysis) -> PoshmarkListing:
    brand_names, default_brand = BRANDS[Marketplace.POSHMARK]
    price = base_price(analysis, Marketplace.POSHMARK)
    low, high = suggested_range(price, Marketplace.POSHMARK)
    return PoshmarkListing(
        title=clean_title(analysis.item_name),
        description=analysis.description,
        category=first_match(analysis.item_name, POSHMARK_CATEGORIES, "Other"),
        condition=condition_from(analysis, POSHMARK_CONDITIONS, "Excellent"),
        price=price,
        brand=attribute(analysis, "Brand") or find_brand(analysis.item_name, brand_names, default_brand),
        size=attribute(analysis, "Size", "US Shoe Size") or find_size(analysis.item_name, POSHMARK_SIZES, "OS"),
        suggested_min_price=low,
        suggested_max_price=high,
    )


def depop_style(name: str) -> str:
    lowered = (name or "").lower()
    for style in DEPOP_STYLES:
        if style in lowered:
            return style
    return first_match(lowered, DEPOP_STYLE_HINTS, "unique")


def _depop(analysis: ScannedItemAnalysis) -> DepopListing:
    price = base_price(analysis, Marketplace.DEPOP)
    low, high = suggested_range(price, Marketplace.DEPOP)
    return DepopListing(
        title=clean_title(analysis.item_name),
        description=analysis.description,
        category=first_match(analysis.item_name, DEPOP_CATEGORIES, "Everything Else"),
        condition=condition_from(analysis, DEPOP_CONDITIONS, "Good"),
        price=price,
        style=depop_style(analysis.item_name),
        size=attribute(analysis, "Size", "US Shoe Size") or find_size(analysis.item_name, DEPOP_SIZES, "One Size"),
        suggested_min_price=low,
        suggested_max_price=high,
    )


BUILDERS: Dict[Marketplace, Callable[[ScannedItemAnalysis], MarketplaceListing]] = {
    Marketplace.EBAY: _ebay,
    Marketplace.AMAZON: _amazon,
    Marketplace.ETSY: _etsy,
    Marketplace.FACEBOOK: _facebook,
    Marketplace.STOCKX: _stockx,
    Marketplace.MERCARI: _mercari,
    Marketplace.POSHMARK: _poshmark,
    Marketplace.DEPOP: _depop,
}


def build_listing(analysis: ScannedItemAnalysis, marketplace: Marketplace) -> MarketplaceListing:
    """Project one scanned item onto one marketplace's listing fields."""
    return BUILDERS[Marketplace(marketplace)](analysis)


# --- StockX pricing ----------------------------------------------------------

STOCKX_STRATEGIES = ("competitive", "aggressive", "premium", "last_sale")


def stockx_price(listing: StockXListing, strategy: str = "competitive") -> float:
    if strategy == "competitive":
        # middle of the bid/ask spread
        return round((listing.highest_bid + listing.lowest_ask) / 2, 2)
    if strategy == "aggressive":
        return round(max(listing.highest_bid - 10, listing.highest_bid * 0.95), 2)
    if strategy == "premium":
        return round(max(listing.lowest_ask - 5, listing.lowest_ask * 0.98), 2)
    if strategy == "last_sale":
        return listing.last_sale_price
    raise ValueError(f"Unknown StockX pricing strategy: {strategy}")


def stockx_condition_score(condition: str) -> int:
    return STOCKX_CONDITION_SCORES.get((condition or "").strip().lower(), 8)


def stockx_tags(listing: StockXListing) -> List[str]:
    tags = ["StockX", "Authenticated", "Resale"]
    tags.extend(find_all(listing.product_name, STOCKX_BRAND_TAGS))
    if listing.colorway:
        tags.append(listing.colorway)
    if listing.sku:
        tags.append(listing.sku)
    return tags


def find_all(text: str, words: Iterable[str]) -> List[str]:
    lowered = (text or "").lower()
    return [word for word in words if word.lower() in lowered]
