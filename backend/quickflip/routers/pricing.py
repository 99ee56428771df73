import logging
from fastapi import APIRouter, Depends, HTTPException
from openai import AsyncOpenAI
from quickflip.models.analysis import ErrorResponse
from quickflip.models.listing import StockXListing
from quickflip.models.pricing import (
    PriceResearchRequest,
    PriceResearchResponse,
    ProfitRequest,
    ProfitResponse,
    StockXPriceResponse,
)
from quickflip.routers.analysis import AnalysisFailed, complete, error_response, get_openai_client
from quickflip.utils.fees import calculate_all_marketplaces, calculate_profit
from quickflip.utils.listing_mapper import STOCKX_STRATEGIES, stockx_price
from quickflip.utils.price_research import parse_price_research
from quickflip.utils.prompts import price_research_messages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/pricing", tags=["Pricing"])

RESEARCH_MODEL = "gpt-4o-mini"
RESEARCH_MAX_TOKENS = 300

@router.post("/profit", response_model=ProfitResponse)
def profit_breakdown(data: ProfitRequest):
    """
    Net profit after marketplace fees. Send either one selling_price + marketplace,
    or a prices map to compare marketplaces (most profitable first).
    """
    if data.prices:
        breakdowns = calculate_all_marketplaces(data.prices, cost_basis=data.cost_basis,
                                                shipping_cost=data.shipping_cost)
        return {"breakdowns": breakdowns}

    if data.selling_price is None or data.marketplace is None:
        raise HTTPException(status_code=400, detail="Provide selling_price and marketplace, or prices")

    breakdown = calculate_profit(data.selling_price, data.marketplace, cost_basis=data.cost_basis,
                                 shipping_cost=data.shipping_cost)
    return {"breakdowns": [breakdown]}

@router.post(
    "/research",
    response_model=PriceResearchResponse,
    responses={500: {"model": ErrorResponse}},
)
async def research_prices(data: PriceResearchRequest, client: AsyncOpenAI = Depends(get_openai_client)):
    """
    Ask the model for a resale estimate on every marketplace, then rank the
    marketplaces by net profit for the caller's cost basis.
    """
    params = data.upstream_params(model=RESEARCH_MODEL, max_tokens=RESEARCH_MAX_TOKENS)
    logger.info("Researching prices for %r with model=%s", data.item_name, params["model"])
    try:
        content = await complete(client, price_research_messages(data.item_name, data.category), params)
    except AnalysisFailed as e:
        return e.response()
    except Exception as e:
        logger.exception("Price research failed")
        return error_response(500, str(e) or e.__class__.__name__)

    research = parse_price_research(content)
    breakdowns = calculate_all_marketplaces(research.prices, cost_basis=data.cost_basis,
                                            shipping_cost=data.shipping_cost)
    return {"content": content, "research": research, "breakdowns": breakdowns}

@router.post("/stockx", response_model=StockXPriceResponse)
def stockx_ask_prices(listing: StockXListing):
    """Suggested ask for each StockX pricing strategy."""
    return {
        "last_sale_price": listing.last_sale_price,
        "lowest_ask": listing.lowest_ask,
        "highest_bid": listing.highest_bid,
        "prices": {strategy: stockx_price(listing, strategy) for strategy in STOCKX_STRATEGIES},
    }
