"""
Direction alignment between a reference pool move and a pending trade.
"""


def expected_upward(sells_base: bool, reference_inverted: bool) -> bool:
    """
    Direction a reference must move to explain the trade.

    Selling the protected base asset pushes the protected price down, buying
    it pushes the price up. An inverted reference quotes the pair the other
    way round, so its expected direction flips.
    """
    upward = not sells_base
    if reference_inverted:
        upward = not upward
    return upward


def is_aligned(
    old_sqrt_price_x96: int,
    new_sqrt_price_x96: int,
    sells_base: bool,
    reference_inverted: bool,
) -> bool:
    """
    Whether a reference moved in the same economic direction as the trade.

    A reference moving against the trade must never offset its impact, and a
    reference without a baseline or without movement explains nothing.
    """
    if old_sqrt_price_x96 == 0 or old_sqrt_price_x96 == new_sqrt_price_x96:
        return False

    if expected_upward(sells_base, reference_inverted):
        return new_sqrt_price_x96 > old_sqrt_price_x96
    return new_sqrt_price_x96 < old_sqrt_price_x96
