#bistro/api/routers/carts.py
from fastapi import APIRouter, Depends

from bistro.api.deps import get_current_user_id, get_cart_service
from bistro.domain.schemas import (
    CartAddIn,
    CartUpdateIn,
    CartOut,
    CartEntryOut,
    CartDeletedOut,
    CartClearedOut,
)
from bistro.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    user_id: int = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(user_id)


@router.post("", response_model=CartEntryOut)
def add_item(
    payload: CartAddIn,
    user_id: int = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(user_id, payload.item_id, payload.quantity)


#clear przed /{entry_id} zeby nie zlapal sie jako id
@router.post("/clear", response_model=CartClearedOut)
def clear_cart(
    user_id: int = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear_cart(user_id)


@router.put("/{entry_id}", response_model=CartEntryOut)
def update_item(
    entry_id: int,
    payload: CartUpdateIn,
    user_id: int = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_quantity(user_id, entry_id, payload.quantity)


@router.delete("/{entry_id}", response_model=CartDeletedOut)
def remove_item(
    entry_id: int,
    user_id: int = Depends(get_current_user_id),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(user_id, entry_id)
