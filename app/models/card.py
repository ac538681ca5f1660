from datetime import datetime
from typing import Literal

from beanie import Document
from pydantic import Field

Rarity = Literal["Common", "Uncommon", "Rare", "Legendary"]
RARITIES: tuple[str, ...] = ("Common", "Uncommon", "Rare", "Legendary")


class Card(Document):
    name: str
    category: str
    price: float
    rarity: Rarity
    rating: float = 0
    stock: int = 0
    in_stock: bool = True
    description: str | None = None
    image_url: str | None = None
    # Buy X get Y promotion
    promo_active: bool = False
    promo_buy_qty: int = 0
    promo_get_qty: int = 0
    promo_get_amount: float = 0  # dollar amount shown next to the price
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "cards"
        indexes = [[("created_at", -1)]]
