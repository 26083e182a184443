"""Low-stock determination rule."""

DEFAULT_LOW_STOCK_THRESHOLD = 5


def is_low_stock(stock_quantity: int, low_stock_threshold: int) -> bool:
    """
    Return True when the product needs replenishment.

    The boundary is inclusive: a product holding exactly its threshold
    quantity is already low on stock.
    """
    return stock_quantity <= low_stock_threshold
