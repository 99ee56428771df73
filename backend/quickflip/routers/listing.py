from fastapi import APIRouter, HTTPException, Depends
from quickflip.auth.auth_handler import get_current_user
from quickflip.config import Settings, get_settings
from quickflip.models.analysis import ParseRequest, ParseResult
from quickflip.models.listing import (
    API_MARKETPLACES,
    Marketplace,
    PrepareRequest,
    PrepareResponse,
    SubmitRequest,
    SubmitResponse,
)
from quickflip.routers.marketplace_oauth import MarketplaceNotConnected, get_marketplace_token
from quickflip.utils.item_parser import parse_analysis_detailed
from quickflip.utils.listing_handoff import handoff_for, search_url
from quickflip.utils.listing_mapper import build_listing
from quickflip.utils.marketplace_clients import EbayClient, EtsyClient, MarketplaceAPIError, StockXClient
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/listing", tags=["Listing"])

@router.post("/parse", response_model=ParseResult)
def parse_listing_content(data: ParseRequest):
    """Structured fields from a raw analysis reply, plus which labels were missing."""
    return parse_analysis_detailed(data.content)

@router.post("/prepare", response_model=PrepareResponse)
def prepare_listing(data: PrepareRequest):
    """
    Map an analysed item onto one marketplace's listing shape and work out how it
    gets there: posted through the API, or copied to the clipboard and pasted.
    """
    if data.analysis is not None:
        analysis = data.analysis
    elif data.content:
        analysis = parse_analysis_detailed(data.content).analysis
    else:
        raise HTTPException(status_code=400, detail="Provide either content or analysis")

    listing = build_listing(analysis, data.marketplace)
    return {
        "analysis": analysis,
        "listing": listing,
        "handoff": handoff_for(listing),
        "search_url": search_url(data.marketplace, analysis.item_name),
    }

def _post_listing(listing, image_urls, token_record, settings: Settings) -> dict:
    marketplace = Marketplace(listing.marketplace)
    if marketplace == Marketplace.EBAY:
        client = EbayClient(token_record.access_token, sandbox=settings.ebay_sandbox)
        policies = {
            "fulfillment": token_record.fulfillment_policy_id,
            "payment": token_record.payment_policy_id,
            "return": token_record.return_policy_id,
        }
        return client.create_listing(listing, image_urls, policies)
    if marketplace == Marketplace.ETSY:
        shop_id = token_record.shop_id or settings.etsy_shop_id
        if not shop_id:
            raise MarketplaceAPIError(marketplace, 400, "No Etsy shop found for this account")
        client = EtsyClient(token_record.access_token, settings.etsy_client_id or "", shop_id)
        return client.create_listing(listing, image_urls)
    client = StockXClient(token_record.access_token, settings.stockx_api_key or "")
    return client.create_listing(listing)

@router.post("/submit", response_model=SubmitResponse)
def submit_listing(
    data: SubmitRequest,
    user: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    """
    Create the listing on the marketplace with the seller's connected account.
    Only eBay, Etsy and StockX are reachable this way.
    """
    listing = data.listing
    marketplace = Marketplace(listing.marketplace)
    if marketplace not in API_MARKETPLACES:
        raise HTTPException(
            status_code=400,
            detail=f"{marketplace.value} has no listing API; use the clipboard handoff instead",
        )

    try:
        token_record = get_marketplace_token(user, marketplace, settings)
    except MarketplaceNotConnected:
        raise HTTPException(status_code=401, detail=f"Connect your {marketplace.value} account first")

    try:
        result = _post_listing(listing, data.image_urls, token_record, settings)
    except MarketplaceAPIError as e:
        logger.error("Listing on %s failed for %s: %s", marketplace.value, user, e)
        raise HTTPException(status_code=502, detail=e.body)

    return {"marketplace": marketplace, **result}
