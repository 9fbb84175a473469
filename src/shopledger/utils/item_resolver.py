"""Utility for resolving item names to IDs."""

from shopledger.domain.stock import StockService


def resolve_item(stock_service: StockService, shop_id: str, item: str | int) -> int:
    """Resolve item name or ID to item ID within a shop.

    Args:
        stock_service: StockService instance
        shop_id: Shop the item must belong to
        item: Item ID (int or numeric string) or exact item name

    Returns:
        Item ID

    Raises:
        ValueError: If item is not found or the name is ambiguous
    """
    try:
        item_id = int(item)
    except (ValueError, TypeError):
        item_id = None

    if item_id is not None:
        item_obj = stock_service.get_item(item_id)
        if item_obj is None or item_obj.shop_id != shop_id:
            raise ValueError(f"Item ID {item_id} not found")
        return item_id

    matches = [i for i in stock_service.list_items(shop_id) if i.name == item]
    if not matches:
        raise ValueError(f"Item '{item}' not found")
    if len(matches) > 1:
        ids = ", ".join(str(i.id) for i in matches)
        raise ValueError(f"Item name '{item}' is ambiguous (IDs: {ids}); use the ID instead")
    return matches[0].id
