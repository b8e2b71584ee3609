# bistro/services/item_service.py
import os
import uuid
from decimal import Decimal
from typing import BinaryIO

from sqlalchemy.orm import Session

from bistro.data.models.item import ItemModel
from bistro.repos.item_repo import ItemRepo
from bistro.domain.enums import Category
from bistro.domain.errors import InvalidInputError, NotFoundError
from bistro.domain.schemas import ItemOut, ItemUpdate
from bistro.utils.settings import UPLOAD_DIR
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}


class ImageStorage:
    """Pliki zdjec w katalogu serwowanym pod /uploads."""

    def __init__(self, directory: str | None = None):
        self.directory = directory or UPLOAD_DIR

    def save(self, filename: str, stream: BinaryIO) -> str:
        ext = os.path.splitext(filename or "")[1].lower()
        if ext not in ALLOWED_IMAGE_EXTENSIONS:
            raise InvalidInputError(f"Unsupported image type '{ext or filename}'")

        os.makedirs(self.directory, exist_ok=True)
        stored = f"{uuid.uuid4().hex}{ext}"
        with open(os.path.join(self.directory, stored), "wb") as fh:
            while chunk := stream.read(64 * 1024):
                fh.write(chunk)
        return stored

    def delete(self, stored: str) -> bool:
        path = os.path.join(self.directory, os.path.basename(stored))
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            logger.warning(f"Plik zdjecia {path} nie istnieje, pomijam")
            return False


class ItemService:
    def __init__(self, db: Session, storage: ImageStorage | None = None):
        self.repo = ItemRepo(db)
        self.storage = storage or ImageStorage()

    #query
    def list_items(self, category: Category | None = None) -> list[ItemOut]:
        items = self.repo.list_items(category.value if category else None)
        return [ItemOut.model_validate(i) for i in items]

    def get_item(self, item_id: int) -> ItemOut:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found")
        return ItemOut.model_validate(item)

    #commands
    def create_item(
        self,
        name: str,
        description: str,
        category: Category,
        price: Decimal,
        rating: float = 0,
        hearts: int = 0,
        image_name: str | None = None,
        image_stream: BinaryIO | None = None,
    ) -> ItemOut:
        if not name or not name.strip():
            raise InvalidInputError("Item name is required")
        if price < 0:
            raise InvalidInputError("Price must be non-negative")
        if not 0 <= rating <= 5:
            raise InvalidInputError("Rating must be between 0 and 5")
        if hearts < 0:
            raise InvalidInputError("Hearts must be non-negative")

        stored = None
        if image_stream is not None and image_name:
            stored = self.storage.save(image_name, image_stream)

        item = ItemModel(
            name=name.strip(),
            description=description or "",
            category=category.value,
            price=price,
            rating=rating,
            hearts=hearts,
            image_url=stored,
        )
        created = self.repo.create_item(item)
        logger.info(f"Dodano pozycje menu {created.id} ({created.name})")
        return ItemOut.model_validate(created)

    def update_item(self, item_id: int, payload: ItemUpdate) -> ItemOut:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found")

        #null w requescie = brak zmiany, kolumny sa NOT NULL
        changes = {k: v for k, v in payload.model_dump(exclude_unset=True).items() if v is not None}
        for field, value in changes.items():
            if field == "category":
                value = Category(value).value
            setattr(item, field, value)

        saved = self.repo.save(item)
        logger.info(f"Zmieniono pozycje menu {item_id}: {sorted(changes)}")
        return ItemOut.model_validate(saved)

    def delete_item(self, item_id: int) -> None:
        item = self.repo.get_item(item_id)
        if not item:
            raise NotFoundError("Item not found")

        image = item.image_url
        self.repo.delete_item(item)
        if image:
            self.storage.delete(image)

        logger.info(f"Usunieto pozycje menu {item_id}")
