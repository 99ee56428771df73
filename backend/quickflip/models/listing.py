from enum import Enum
from pydantic import BaseModel, Field
from typing import Annotated, Dict, List, Literal, Optional, Union
from quickflip.models.analysis import ScannedItemAnalysis

class Marketplace(str, Enum):
    EBAY = "eBay"
    FACEBOOK = "Facebook Marketplace"
    AMAZON = "Amazon"
    STOCKX = "StockX"
    ETSY = "Etsy"
    MERCARI = "Mercari"
    POSHMARK = "Poshmark"
    DEPOP = "Depop"

# Marketplaces with a listing-creation API; the rest get the copy-and-open handoff.
API_MARKETPLACES = (Marketplace.EBAY, Marketplace.ETSY, Marketplace.STOCKX)

class ListingBase(BaseModel):
    title: str
    description: str = ""
    category: str = ""
    condition: str = ""
    price: float = 0.0

class EbayListing(ListingBase):
    marketplace: Literal["eBay"] = "eBay"
    listing_type: Literal["buy_it_now", "auction"] = "buy_it_now"
    starting_price: float = 0.99
    duration_days: int = 7
    shipping_cost: float = 0.0
    returns_accepted: bool = True
    return_period_days: int = 30
    item_specifics: Dict[str, str] = {}

class AmazonListing(ListingBase):
    marketplace: Literal["Amazon"] = "Amazon"
    brand: str = "Generic"
    upc: str = ""
    search_terms: str = ""
    requires_approval: bool = False
    browse_node: Optional[str] = None

class EtsyListing(ListingBase):
    marketplace: Literal["Etsy"] = "Etsy"
    tags: List[str] = []
    materials: List[str] = []
    who_made: str = "someone_else"
    when_made: str = "2020_2025"

class FacebookListing(ListingBase):
    marketplace: Literal["Facebook Marketplace"] = "Facebook Marketplace"

class StockXListing(ListingBase):
    marketplace: Literal["StockX"] = "StockX"
    product_name: str = ""
    colorway: str = ""
    sku: str = ""
    variant_id: Optional[str] = None
    last_sale_price: float = 0.0
    lowest_ask: float = 0.0
    highest_bid: float = 0.0

class MercariListing(ListingBase):
    marketplace: Literal["Mercari"] = "Mercari"
    brand: str = ""
    suggested_min_price: float = 0.0
    suggested_max_price: float = 0.0

class PoshmarkListing(ListingBase):
    marketplace: Literal["Poshmark"] = "Poshmark"
    brand: str = "Boutique"
    size: str = "OS"
    suggested_min_price: float = 0.0
    suggested_max_price: float = 0.0

class DepopListing(ListingBase):
    marketplace: Literal["Depop"] = "Depop"
    style: str = "unique"
    size: str = "One Size"
    suggested_min_price: float = 0.0
    suggested_max_price: float = 0.0

MarketplaceListing = Annotated[
    Union[
        EbayListing,
        AmazonListing,
        EtsyListing,
        FacebookListing,
        StockXListing,
        MercariListing,
        PoshmarkListing,
        DepopListing,
    ],
    Field(discriminator="marketplace"),
]

class ListingHandoff(BaseModel):
    marketplace: Marketplace
    method: Literal["api", "clipboard"]
    listing_text: str
    url: str
    instructions: List[str] = []

class PrepareRequest(BaseModel):
    marketplace: Marketplace
    content: Optional[str] = None
    analysis: Optional[ScannedItemAnalysis] = None

class PrepareResponse(BaseModel):
    analysis: ScannedItemAnalysis
    listing: MarketplaceListing
    handoff: ListingHandoff
    search_url: str

class SubmitRequest(BaseModel):
    listing: MarketplaceListing
    image_urls: List[str] = []

class SubmitResponse(BaseModel):
    marketplace: Marketplace
    listing_id: str
    listing_url: Optional[str] = None
    status: str = "posted"
