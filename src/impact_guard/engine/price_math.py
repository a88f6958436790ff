"""
Square-root price arithmetic for impact estimation.

Key concepts:
- sqrtPriceX96: Square root of price in Q96 fixed-point format (96 bits of precision)
- price = (sqrtPriceX96 / 2**96) ** 2, so a relative move of x in sqrtPrice is
  roughly 2x in price. Price changes here use that first-order approximation.
- Basis points: 10000 bps = 100%

All functions operate on Python ints and never raise on degenerate input.
"""

# Q96 constants
Q96 = 2**96
RESOLUTION = 96

MAX_BPS = 10_000


def change_bps(old_sqrt_price_x96: int, new_sqrt_price_x96: int) -> int:
    """
    Magnitude of the price move between two sqrtPrice samples, in bps.

    Formula: 2 * |new - old| * 10000 / old

    Not clamped. A zero baseline means nothing has been observed yet and
    reads as no movement.
    """
    if old_sqrt_price_x96 == 0:
        return 0
    diff = abs(new_sqrt_price_x96 - old_sqrt_price_x96)
    return (2 * diff * MAX_BPS) // old_sqrt_price_x96


def next_sqrt_price(
    *,
    amount: int,
    liquidity: int,
    sqrt_price_x96: int,
    sells_base: bool,
) -> int:
    """
    sqrtPrice after a swap, assuming liquidity is constant over the move.

    Selling the base asset:  √P' = √P * L / (L + Δbase)
    Selling the quote asset: √P' = √P + (Δquote << 96) / L

    Args:
        amount: Signed swap amount, only its magnitude is used
        liquidity: Active pool liquidity L (must be non-zero)
        sqrt_price_x96: Current sqrtPriceX96
        sells_base: True when the base asset (currency0) is sold

    Returns:
        New sqrtPriceX96 (0 when a base sale would drain the range)
    """
    delta = abs(amount)
    if sells_base:
        if delta >= liquidity:
            return 0
        return (sqrt_price_x96 * liquidity) // (liquidity + delta)
    return sqrt_price_x96 + (delta << RESOLUTION) // liquidity


def estimate_swap_impact_bps(
    amount: int,
    liquidity: int,
    sqrt_price_x96: int,
    sells_base: bool,
) -> int:
    """
    Estimate the price displacement a pending swap would cause.

    Closed-form, single-range approximation: it does not walk tick
    boundaries, so trades crossing many initialized ticks may be misjudged.

    Returns:
        Impact in bps, clamped to [0, 10000]. Empty pools and base sales at
        least as large as the liquidity report the maximum.
    """
    if liquidity == 0 or sqrt_price_x96 == 0:
        return MAX_BPS
    if sells_base and abs(amount) >= liquidity:
        return MAX_BPS

    new_sqrt_price = next_sqrt_price(
        amount=amount,
        liquidity=liquidity,
        sqrt_price_x96=sqrt_price_x96,
        sells_base=sells_base,
    )
    return min(change_bps(sqrt_price_x96, new_sqrt_price), MAX_BPS)


def sqrt_price_to_price(sqrt_price_x96: int) -> float:
    """Convert sqrtPriceX96 to a human-readable price (token1/token0)."""
    if sqrt_price_x96 == 0:
        return 0.0
    return (sqrt_price_x96 / Q96) ** 2
