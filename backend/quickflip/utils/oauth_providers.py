"""
Authorization-code OAuth settings for the marketplaces that have a listing API.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional
from urllib.parse import urlencode

import requests
from jose import JWTError, jwt

from quickflip.config import Settings
from quickflip.models.listing import API_MARKETPLACES, Marketplace
from quickflip.models.marketplace_token_db import utcnow

logger = logging.getLogger(__name__)

TOKEN_TIMEOUT = 30
STATE_TTL = timedelta(minutes=10)
STATE_PURPOSE = "marketplace_oauth"


@dataclass
class OAuthProvider:
    marketplace: Marketplace
    auth_url: str
    token_url: str
    scope: str
    client_id: Optional[str]
    client_secret: Optional[str]
    redirect_uri: Optional[str]
    extra_auth_params: Dict[str, str] = field(default_factory=dict)

    @property
    def configured(self) -> bool:
        return all([self.client_id, self.client_secret, self.redirect_uri])

    def authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.redirect_uri,
            "scope": self.scope,
            "state": state,
        }
        params.update(self.extra_auth_params)
        return f"{self.auth_url}?{urlencode(params)}"

    def exchange_code(self, code: str) -> dict:
        return self._token_request({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
        })

    def refresh(self, refresh_token: str) -> dict:
        return self._token_request({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })

    def _token_request(self, data: dict) -> dict:
        response = requests.post(
            self.token_url,
            data=data,
            auth=(self.client_id, self.client_secret),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            timeout=TOKEN_TIMEOUT,
        )
        logger.debug("%s token endpoint responded %s", self.marketplace.value, response.status_code)
        if response.status_code != 200:
            raise TokenExchangeError(self.marketplace, response.status_code, response.text)
        return response.json()


class TokenExchangeError(Exception):
    def __init__(self, marketplace: Marketplace, status_code: int, body: str):
        self.marketplace = marketplace
        self.status_code = status_code
        self.body = body
        super().__init__(f"{marketplace.value} token request failed ({status_code}): {body}")


def get_provider(marketplace: Marketplace, settings: Settings) -> OAuthProvider:
    marketplace = Marketplace(marketplace)
    if marketplace == Marketplace.EBAY:
        auth_host = "auth.sandbox.ebay.com" if settings.ebay_sandbox else "auth.ebay.com"
        api_host = "api.sandbox.ebay.com" if settings.ebay_sandbox else "api.ebay.com"
        return OAuthProvider(
            marketplace=marketplace,
            auth_url=f"https://{auth_host}/oauth2/authorize",
            token_url=f"https://{api_host}/identity/v1/oauth2/token",
            scope="https://api.ebay.com/oauth/api_scope/sell.inventory "
                  "https://api.ebay.com/oauth/api_scope/sell.account",
            client_id=settings.ebay_client_id,
            client_secret=settings.ebay_client_secret,
            redirect_uri=settings.ebay_redirect_uri,
        )
    if marketplace == Marketplace.ETSY:
        return OAuthProvider(
            marketplace=marketplace,
            auth_url="https://www.etsy.com/oauth/connect",
            token_url="https://api.etsy.com/v3/public/oauth/token",
            scope="listings_w shops_r profile_r",
            client_id=settings.etsy_client_id,
            client_secret=settings.etsy_client_secret,
            redirect_uri=settings.etsy_redirect_uri,
        )
    if marketplace == Marketplace.STOCKX:
        return OAuthProvider(
            marketplace=marketplace,
            auth_url="https://accounts.stockx.com/authorize",
            token_url="https://accounts.stockx.com/oauth/token",
            scope="offline_access openid",
            client_id=settings.stockx_client_id,
            client_secret=settings.stockx_client_secret,
            redirect_uri=settings.stockx_redirect_uri,
            extra_auth_params={"audience": "gateway.stockx.com"},
        )
    raise ValueError(f"{marketplace.value} has no listing API to connect to")


def is_oauth_marketplace(marketplace: Marketplace) -> bool:
    return Marketplace(marketplace) in API_MARKETPLACES


def encode_state(user: str, secret: str, algorithm: str = "HS256") -> str:
    """Signed, short-lived state value binding the consent redirect to the user who started it."""
    state_data = {
        "sub": user,
        "nonce": str(uuid.uuid4()),
        "purpose": STATE_PURPOSE,
        "exp": utcnow() + STATE_TTL,
    }
    return jwt.encode(state_data, secret, algorithm=algorithm)


def decode_state(state: str, secret: str, algorithm: str = "HS256") -> str:
    """User id carried in an OAuth state value; ValueError if it is forged, expired or malformed."""
    try:
        state_data = jwt.decode(state, secret, algorithms=[algorithm])
    except JWTError as e:
        raise ValueError("Invalid state parameter") from e
    if state_data.get("purpose") != STATE_PURPOSE or not state_data.get("sub"):
        raise ValueError("Invalid state parameter")
    return state_data["sub"]


def expiry_from(token_response: dict) -> datetime:
    return utcnow() + timedelta(seconds=int(token_response.get("expires_in", 3600)))
