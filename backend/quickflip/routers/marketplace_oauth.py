from fastapi import APIRouter, HTTPException, Depends, Query
from fastapi.responses import RedirectResponse
from quickflip.auth.auth_handler import decode_token, get_current_user
from quickflip.config import Settings, get_settings
from quickflip.db import get_session
from quickflip.models.listing import Marketplace
from quickflip.models.marketplace_token_db import MarketplaceToken, as_utc, utcnow
from quickflip.utils.oauth_providers import (
    OAuthProvider,
    TokenExchangeError,
    decode_state,
    encode_state,
    expiry_from,
    get_provider,
    is_oauth_marketplace,
)
from quickflip.utils.marketplace_clients import fetch_ebay_policy_ids, fetch_etsy_shop_id
from sqlmodel import select
from jose import JWTError
import logging
import uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/marketplaces/{marketplace}/oauth", tags=["Marketplace OAuth"])

def oauth_provider(marketplace: Marketplace, settings: Settings = Depends(get_settings)) -> OAuthProvider:
    if not is_oauth_marketplace(marketplace):
        raise HTTPException(status_code=400, detail=f"{marketplace.value} has no listing API to connect to")
    provider = get_provider(marketplace, settings)
    if not provider.configured:
        raise HTTPException(status_code=500, detail=f"{marketplace.value} OAuth configuration is incomplete")
    return provider

def find_token(session, user: str, marketplace: Marketplace):
    return session.exec(
        select(MarketplaceToken).where(
            MarketplaceToken.user_id == user,
            MarketplaceToken.marketplace == marketplace.value,
        )
    ).first()

class MarketplaceNotConnected(Exception):
    def __init__(self, marketplace: Marketplace, reason: str = "not connected"):
        self.marketplace = marketplace
        self.reason = reason
        super().__init__(f"{marketplace.value}: {reason}")

def get_marketplace_token(user: str, marketplace: Marketplace, settings: Settings) -> MarketplaceToken:
    """
    A usable token record for the user's marketplace account, refreshed first if it
    has expired. Raises MarketplaceNotConnected when there is none or the refresh fails.
    """
    with get_session() as session:
        token_record = find_token(session, user, marketplace)
        if not token_record:
            raise MarketplaceNotConnected(marketplace)

        if token_record.expired():
            if not token_record.refresh_token:
                raise MarketplaceNotConnected(marketplace, "token expired")
            logger.info("%s token for %s expired, refreshing", marketplace.value, user)
            try:
                token_response = get_provider(marketplace, settings).refresh(token_record.refresh_token)
            except (TokenExchangeError, ValueError) as e:
                logger.warning("%s token refresh failed for %s: %s", marketplace.value, user, e)
                raise MarketplaceNotConnected(marketplace, "token expired and refresh failed")
            apply_token_response(token_record, token_response)
            session.add(token_record)
            session.commit()
            session.refresh(token_record)

        session.expunge(token_record)
        return token_record

def apply_token_response(token_record: MarketplaceToken, token_response: dict):
    token_record.access_token = token_response["access_token"]
    # Some providers only rotate the refresh token occasionally.
    if token_response.get("refresh_token"):
        token_record.refresh_token = token_response["refresh_token"]
    token_record.expires_at = expiry_from(token_response)
    token_record.updated_at = utcnow()

@router.get("/start")
def start_oauth(
    marketplace: Marketplace,
    token: str = Query(None),
    settings: Settings = Depends(get_settings),
    provider: OAuthProvider = Depends(oauth_provider),
):
    """
    Redirect the user to the marketplace's consent page.
    Takes the caller's JWT as a 'token' query parameter, since this is opened in a browser.
    """
    if not token:
        raise HTTPException(status_code=401, detail="No token provided")
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is not configured")
    try:
        user = decode_token(token, settings.jwt_secret, settings.jwt_algorithm)["sub"]
    except (JWTError, KeyError):
        raise HTTPException(status_code=401, detail="Invalid token in query param")

    auth_url = provider.authorize_url(encode_state(user, settings.jwt_secret, settings.jwt_algorithm))
    logger.info("Starting %s OAuth for %s", marketplace.value, user)
    return RedirectResponse(url=auth_url)

@router.get("/callback")
def oauth_callback(
    marketplace: Marketplace,
    code: str = Query(None),
    state: str = Query(None),
    settings: Settings = Depends(get_settings),
    provider: OAuthProvider = Depends(oauth_provider),
):
    """
    Exchange the authorization code for access and refresh tokens and store them.
    """
    if not code:
        raise HTTPException(status_code=400, detail="Authorization code is missing")
    if not settings.jwt_secret:
        raise HTTPException(status_code=500, detail="JWT_SECRET is not configured")
    try:
        user = decode_state(state or "", settings.jwt_secret, settings.jwt_algorithm)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid state parameter")

    try:
        token_response = provider.exchange_code(code)
    except TokenExchangeError as e:
        logger.error("%s code exchange failed: %s", marketplace.value, e)
        raise HTTPException(status_code=400, detail=f"Failed to get access token: {e.body}")

    with get_session() as session:
        token_record = find_token(session, user, marketplace)
        if token_record is None:
            token_record = MarketplaceToken(
                id=str(uuid.uuid4()),
                user_id=user,
                marketplace=marketplace.value,
                access_token=token_response["access_token"],
                expires_at=expiry_from(token_response),
            )
        apply_token_response(token_record, token_response)

        if marketplace == Marketplace.EBAY:
            policies = fetch_ebay_policy_ids(token_record.access_token, sandbox=settings.ebay_sandbox)
            token_record.fulfillment_policy_id = policies.get("fulfillment")
            token_record.payment_policy_id = policies.get("payment")
            token_record.return_policy_id = policies.get("return")
        elif marketplace == Marketplace.ETSY:
            token_record.shop_id = settings.etsy_shop_id or fetch_etsy_shop_id(
                token_record.access_token, settings.etsy_client_id
            )

        session.add(token_record)
        session.commit()
        logger.info("Stored %s token for %s", marketplace.value, user)

    return {"message": f"Successfully connected to {marketplace.value}"}

@router.post("/refresh")
def refresh_token(
    marketplace: Marketplace,
    user: str = Depends(get_current_user),
    provider: OAuthProvider = Depends(oauth_provider),
):
    with get_session() as session:
        token_record = find_token(session, user, marketplace)
        if not token_record or not token_record.refresh_token:
            raise HTTPException(status_code=404, detail=f"No {marketplace.value} tokens found for user")
        try:
            token_response = provider.refresh(token_record.refresh_token)
        except TokenExchangeError as e:
            raise HTTPException(status_code=400, detail=f"Failed to refresh token: {e.body}")
        apply_token_response(token_record, token_response)
        session.add(token_record)
        session.commit()
    return {"message": "Token refreshed successfully"}

@router.get("/status")
def check_auth(
    marketplace: Marketplace,
    user: str = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
):
    if not is_oauth_marketplace(marketplace):
        raise HTTPException(status_code=400, detail=f"{marketplace.value} has no listing API to connect to")
    try:
        token_record = get_marketplace_token(user, marketplace, settings)
    except MarketplaceNotConnected as e:
        if e.reason == "not connected":
            raise HTTPException(status_code=404, detail=f"No {marketplace.value} tokens found for user")
        raise HTTPException(status_code=401, detail=f"{marketplace.value} {e.reason}")
    return {"status": "authenticated", "expires_at": as_utc(token_record.expires_at)}

@router.post("/disconnect")
def disconnect(marketplace: Marketplace, user: str = Depends(get_current_user)):
    with get_session() as session:
        token_record = find_token(session, user, marketplace)
        if not token_record:
            return {"message": f"No {marketplace.value} connection found"}
        session.delete(token_record)
        session.commit()
    logger.info("Disconnected %s for %s", marketplace.value, user)
    return {"message": f"Disconnected from {marketplace.value}"}
