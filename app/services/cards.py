"""Card catalog: listing with first-run seed, admin create/update/delete."""

from datetime import datetime
from typing import Any

from app.core.config import get_settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.core.ids import parse_object_id
from app.core.logging import get_logger
from app.models.card import RARITIES, Card

log = get_logger(__name__)

STARTER_CATALOG = [
    {"name": "Lightning Dragon", "category": "Mythic", "price": 149.99, "rarity": "Legendary", "rating": 4.8, "in_stock": True},
    {"name": "Shadow Assassin", "category": "Rare", "price": 79.99, "rarity": "Rare", "rating": 4.6, "in_stock": True},
    {"name": "Crystal Phoenix", "category": "Mythic", "price": 299.99, "rarity": "Legendary", "rating": 5.0, "in_stock": True},
    {"name": "Storm Wizard", "category": "Common", "price": 29.99, "rarity": "Common", "rating": 4.2, "in_stock": True},
    {"name": "Ancient Golem", "category": "Rare", "price": 99.99, "rarity": "Rare", "rating": 4.5, "in_stock": False},
    {"name": "Mystic Fairy", "category": "Uncommon", "price": 49.99, "rarity": "Uncommon", "rating": 4.3, "in_stock": True},
    {"name": "Fire Elemental", "category": "Rare", "price": 89.99, "rarity": "Rare", "rating": 4.7, "in_stock": True},
    {"name": "Ice Queen", "category": "Mythic", "price": 199.99, "rarity": "Legendary", "rating": 4.9, "in_stock": True},
]


def _check_rarity(rarity: str) -> None:
    if rarity not in RARITIES:
        raise BadRequestError("Invalid rarity", details={"allowed": list(RARITIES)})


async def ensure_seed() -> None:
    if await Card.find_all().count() > 0:
        return
    await Card.insert_many([Card(**c) for c in STARTER_CATALOG])
    log.info("catalog_seeded", count=len(STARTER_CATALOG))


async def list_cards() -> list[Card]:
    if get_settings().seed_catalog:
        await ensure_seed()
    return await Card.find_all().sort("-created_at", "-_id").to_list()


async def create_card(fields: dict[str, Any]) -> Card:
    _check_rarity(fields.get("rarity", ""))
    if fields.get("in_stock") is None:
        fields["in_stock"] = (fields.get("stock") or 0) > 0
    card = Card(**{k: v for k, v in fields.items() if v is not None})
    await card.insert()
    log.info("card_created", card_id=str(card.id), name=card.name)
    return card


async def get_card(card_id: str) -> Card:
    oid = parse_object_id(card_id)
    card = await Card.get(oid) if oid else None
    if not card:
        raise NotFoundError("Card not found")
    return card


async def update_card(card_id: str, changes: dict[str, Any]) -> Card:
    """Apply only the provided fields; stock without in_stock re-derives availability."""
    if "rarity" in changes:
        _check_rarity(changes["rarity"])
    if "stock" in changes and "in_stock" not in changes:
        changes["in_stock"] = changes["stock"] > 0
    card = await get_card(card_id)
    if changes:
        changes["updated_at"] = datetime.utcnow()
        await card.set(changes)
    log.info("card_updated", card_id=card_id, fields=sorted(changes))
    return card


async def delete_card(card_id: str) -> None:
    card = await get_card(card_id)
    await card.delete()
    log.info("card_deleted", card_id=card_id)
