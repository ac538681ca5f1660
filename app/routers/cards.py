from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.deps import require_admin
from app.models.card import Card
from app.models.user import User
from app.services import cards as cards_service

router = APIRouter()


class _CardFields(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateCardRequest(_CardFields):
    name: str
    category: str
    price: float
    rarity: str
    rating: float = 0
    stock: int = 0
    in_stock: bool | None = None
    description: str | None = None
    image_url: str | None = None
    promo_active: bool = False
    promo_buy_qty: int = 0
    promo_get_qty: int = 0
    promo_get_amount: float = 0


class UpdateCardRequest(_CardFields):
    name: str | None = None
    category: str | None = None
    price: float | None = None
    rarity: str | None = None
    rating: float | None = None
    stock: int | None = None
    in_stock: bool | None = None
    description: str | None = None
    image_url: str | None = None
    promo_active: bool | None = None
    promo_buy_qty: int | None = None
    promo_get_qty: int | None = None
    promo_get_amount: float | None = None


def card_out(card: Card) -> dict:
    return {
        "id": str(card.id),
        "name": card.name,
        "category": card.category,
        "price": card.price,
        "rarity": card.rarity,
        "rating": card.rating,
        "stock": card.stock,
        "inStock": card.in_stock,
        "description": card.description,
        "imageUrl": card.image_url,
        "promoActive": card.promo_active,
        "promoBuyQty": card.promo_buy_qty,
        "promoGetQty": card.promo_get_qty,
        "promoGetAmount": card.promo_get_amount,
        "createdAt": card.created_at,
        "updatedAt": card.updated_at,
    }


@router.get("")
async def list_cards():
    """Catalog, newest first. Seeds the starter set on an empty database."""
    return [card_out(c) for c in await cards_service.list_cards()]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_card(body: CreateCardRequest, _: User = Depends(require_admin)):
    card = await cards_service.create_card(body.model_dump())
    return card_out(card)


@router.put("/{card_id}")
async def update_card(card_id: str, body: UpdateCardRequest, _: User = Depends(require_admin)):
    # Only fields actually sent (and not null) are applied
    changes = {k: v for k, v in body.model_dump(exclude_unset=True).items() if v is not None}
    card = await cards_service.update_card(card_id, changes)
    return card_out(card)


@router.delete("/{card_id}")
async def delete_card(card_id: str, _: User = Depends(require_admin)):
    await cards_service.delete_card(card_id)
    return {"success": True}
