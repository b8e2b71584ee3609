# bistro/api/routers/items.py
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, Query

from bistro.api.deps import get_item_service, require_admin
from bistro.domain.enums import Category
from bistro.domain.schemas import ItemOut, ItemListOut, ItemCreatedOut, ItemUpdate
from bistro.services.item_service import ItemService

router = APIRouter(prefix="/api/items", tags=["items"])


@router.get("", response_model=ItemListOut)
def list_items(
    category: Optional[Category] = Query(None),
    svc: ItemService = Depends(get_item_service),
):
    return ItemListOut(data=svc.list_items(category))


@router.get("/{item_id}", response_model=ItemOut)
def get_item(item_id: int, svc: ItemService = Depends(get_item_service)):
    return svc.get_item(item_id)


@router.post("", response_model=ItemCreatedOut, status_code=201)
def create_item(
    name: str = Form(...),
    description: str = Form(""),
    category: Category = Form(...),
    price: Decimal = Form(..., ge=0),
    rating: float = Form(0, ge=0, le=5),
    hearts: int = Form(0, ge=0),
    image: Optional[UploadFile] = File(None),
    _admin: int = Depends(require_admin),
    svc: ItemService = Depends(get_item_service),
):
    """Multipart: pola formularza + plik zdjecia."""
    item = svc.create_item(
        name=name,
        description=description,
        category=category,
        price=price,
        rating=rating,
        hearts=hearts,
        image_name=image.filename if image else None,
        image_stream=image.file if image else None,
    )
    return ItemCreatedOut(message="Item Added Successfully", item=item)


@router.put("/{item_id}", response_model=ItemOut)
def update_item(
    item_id: int,
    payload: ItemUpdate,
    _admin: int = Depends(require_admin),
    svc: ItemService = Depends(get_item_service),
):
    return svc.update_item(item_id, payload)


@router.delete("/{item_id}")
def delete_item(
    item_id: int,
    _admin: int = Depends(require_admin),
    svc: ItemService = Depends(get_item_service),
):
    svc.delete_item(item_id)
    return {"success": True, "message": "Item Removed Successfully"}
