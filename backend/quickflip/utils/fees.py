from typing import Dict, List
from quickflip.models.listing import Marketplace
from quickflip.models.pricing import MarketplaceFees, ProfitBreakdown

def calculate_fees(selling_price: float, marketplace: Marketplace) -> MarketplaceFees:
    """Seller fees for one sale at selling_price, per the marketplace's published rates."""
    marketplace = Marketplace(marketplace)
    price = selling_price

    if marketplace == Marketplace.EBAY:
        return MarketplaceFees(selling_fee=price * 0.1295, payment_fee=price * 0.029 + 0.30,
                               description="eBay 12.95% + Payment 2.9% + $0.30")
    if marketplace == Marketplace.FACEBOOK:
        if price <= 8.00:
            return MarketplaceFees(selling_fee=price * 0.05, payment_fee=0, description="5% fee")
        return MarketplaceFees(selling_fee=price * 0.029 + 0.30, payment_fee=0, description="2.9% + $0.30")
    if marketplace == Marketplace.STOCKX:
        return MarketplaceFees(selling_fee=price * 0.095, payment_fee=price * 0.03,
                               description="StockX 9.5% + Payment 3%")
    if marketplace == Marketplace.MERCARI:
        return MarketplaceFees(selling_fee=price * 0.10, payment_fee=price * 0.029 + 0.30,
                               description="Mercari 10% + Payment 2.9% + $0.30")
    if marketplace == Marketplace.POSHMARK:
        if price < 15.00:
            return MarketplaceFees(selling_fee=2.95, payment_fee=0, description="$2.95 flat fee")
        return MarketplaceFees(selling_fee=price * 0.20, payment_fee=0, description="20% commission")
    if marketplace == Marketplace.ETSY:
        return MarketplaceFees(selling_fee=price * 0.065, payment_fee=price * 0.03 + 0.25,
                               description="Etsy 6.5% + Payment 3% + $0.25")
    if marketplace == Marketplace.AMAZON:
        # referral fee only; varies by category, 15% is the common rate
        return MarketplaceFees(selling_fee=price * 0.15, payment_fee=0, description="Amazon ~15% referral fee")
    if marketplace == Marketplace.DEPOP:
        return MarketplaceFees(selling_fee=price * 0.10, payment_fee=0, description="Depop 10% commission")
    raise ValueError(f"No fee schedule for {marketplace}")

def calculate_profit(selling_price: float, marketplace: Marketplace, cost_basis: float = 0,
                     shipping_cost: float = 0) -> ProfitBreakdown:
    fees = calculate_fees(selling_price, marketplace)
    net_profit = selling_price - (cost_basis + shipping_cost + fees.total_fees)
    profit_margin = (net_profit / selling_price) * 100 if selling_price > 0 else 0
    return ProfitBreakdown(
        marketplace=Marketplace(marketplace),
        selling_price=selling_price,
        cost_basis=cost_basis,
        shipping_cost=shipping_cost,
        fees=fees,
        net_profit=round(net_profit, 2),
        profit_margin=round(profit_margin, 2),
    )

def calculate_all_marketplaces(prices: Dict[Marketplace, float], cost_basis: float = 0,
                               shipping_cost: float = 0) -> List[ProfitBreakdown]:
    """Profit on every marketplace in prices, most profitable first."""
    breakdowns = [
        calculate_profit(price, marketplace, cost_basis=cost_basis, shipping_cost=shipping_cost)
        for marketplace, price in prices.items()
    ]
    return sorted(breakdowns, key=lambda b: b.net_profit, reverse=True)
