from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

class MarketplaceToken(SQLModel, table=True):
    id: str = Field(default=None, primary_key=True)
    user_id: str = Field(index=True)
    marketplace: str = Field(index=True)
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime = Field(sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True))
    # eBay business policies, looked up once after connecting
    fulfillment_policy_id: Optional[str] = None
    payment_policy_id: Optional[str] = None
    return_policy_id: Optional[str] = None
    # Etsy shop the token can list into
    shop_id: Optional[str] = None

    def expired(self, now: Optional[datetime] = None) -> bool:
        return as_utc(self.expires_at) <= (now or utcnow())
