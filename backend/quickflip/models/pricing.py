from pydantic import BaseModel, Field, computed_field
from typing import Dict, List, Literal, Optional
from quickflip.models.analysis import CompletionParams
from quickflip.models.listing import Marketplace

class MarketplaceFees(BaseModel):
    selling_fee: float
    payment_fee: float
    description: str

    @computed_field
    @property
    def total_fees(self) -> float:
        return round(self.selling_fee + self.payment_fee, 2)

class ProfitBreakdown(BaseModel):
    marketplace: Marketplace
    selling_price: float
    cost_basis: float
    shipping_cost: float
    fees: MarketplaceFees
    net_profit: float
    profit_margin: float

class ProfitRequest(BaseModel):
    selling_price: Optional[float] = Field(default=None, ge=0)
    marketplace: Optional[Marketplace] = None
    prices: Dict[Marketplace, float] = {}
    cost_basis: float = Field(default=0, ge=0)
    shipping_cost: float = Field(default=0, ge=0)

class ProfitResponse(BaseModel):
    breakdowns: List[ProfitBreakdown]

class StockXPriceResponse(BaseModel):
    last_sale_price: float
    lowest_ask: float
    highest_bid: float
    prices: Dict[str, float]

Confidence = Literal["high", "medium", "low"]

class PriceResearch(BaseModel):
    prices: Dict[Marketplace, float] = {}
    recommended: Marketplace
    reasoning: str
    confidence: Confidence = "medium"

class PriceResearchRequest(CompletionParams):
    item_name: str = Field(alias="itemName", min_length=1)
    category: str = ""
    cost_basis: float = Field(default=0, ge=0)
    shipping_cost: float = Field(default=0, ge=0)

class PriceResearchResponse(BaseModel):
    content: str
    research: PriceResearch
    breakdowns: List[ProfitBreakdown]
