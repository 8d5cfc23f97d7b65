class InventoryFeedError(Exception):
    """Base class for errors that cross the inventory feed boundary."""


class SourceUnavailable(InventoryFeedError):
    """The point-of-sale inventory could not be fetched."""


class ItemNotFound(InventoryFeedError):
    def __init__(self, item_id: str, message: str = "Product not found"):
        super().__init__(message)
        self.item_id = item_id
        self.message = message


class ItemOutOfStock(ItemNotFound):
    def __init__(self, item_id: str):
        super().__init__(item_id, "Product is out of stock")
