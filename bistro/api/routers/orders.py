# bistro/api/routers/orders.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from bistro.api.deps import get_current_user_id, get_order_service, require_admin
from bistro.domain.schemas import (
    OrderCreate,
    OrderCreatedOut,
    OrderOut,
    OrderUpdate,
    OrderAdminUpdate,
    ConfirmPaymentIn,
)
from bistro.services.order_service import OrderService

router = APIRouter(prefix="/api/orders", tags=["orders"])


# ---- admin (przed /{order_id}) ----

@router.get("/getall", response_model=List[OrderOut])
def get_all_orders(
    _admin: int = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_all_orders()


@router.put("/getall/{order_id}", response_model=OrderOut)
def update_any_order(
    order_id: int,
    payload: OrderAdminUpdate,
    _admin: int = Depends(require_admin),
    svc: OrderService = Depends(get_order_service),
):
    return svc.update_any_order(order_id, payload)


# ---- platnosc ----

@router.get("/confirm", response_model=OrderOut)
def confirm_payment(
    session_id: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """Powrot z bramki: ?session_id=..."""
    return svc.confirm_payment(session_id, user_id)


@router.post("/confirm", response_model=OrderOut)
def confirm_payment_post(
    payload: ConfirmPaymentIn,
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.confirm_payment(payload.session_id, user_id)


# ---- wlasciciel ----

@router.post("", response_model=OrderCreatedOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    """
    Tworzy zamówienie. Dla platnosci online zwraca checkout_url do bramki.
    """
    return svc.create_order(user_id, payload)


@router.get("", response_model=List[OrderOut])
def get_orders(
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_orders(user_id)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    email: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.get_order(order_id, user_id, email)


@router.put("/{order_id}", response_model=OrderOut)
def update_order(
    order_id: int,
    payload: OrderUpdate,
    email: Optional[str] = Query(None),
    user_id: int = Depends(get_current_user_id),
    svc: OrderService = Depends(get_order_service),
):
    return svc.update_order(order_id, user_id, payload, email)
