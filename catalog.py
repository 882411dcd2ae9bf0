"""
Project: Restaurant Back-Office (RBO)

Description:
Menu catalog service. Reads and writes menu items through an explicitly
supplied database session and broadcasts every committed change on the
menu-items channel. An image replaced by a new upload is removed from
disk, as is an upload whose transaction fails.
"""

from contextlib import contextmanager
from typing import List, Optional

from loguru import logger
from sqlalchemy import select

from errors import NotFound
from images import ImageStore
from models import MenuItem, Order, OrderItem, atomic
from schemas import MenuItemCreate, MenuItemUpdate, provided_fields

DEFAULT_POPULAR_LIMIT = 5

_COLUMNS = ("name", "price", "image_path", "description", "category")
_NULLABLE = ("image_path", "description", "category")


class CatalogService:
    def __init__(self, session, notifier, images: ImageStore):
        self.session = session
        self.notifier = notifier
        self.images = images

    # ----- queries -----
    def list(self, category: Optional[str] = None) -> List[MenuItem]:
        query = select(MenuItem).order_by(MenuItem.id)
        if category:
            query = query.where(MenuItem.category == category)
        return list(self.session.execute(query).scalars().all())

    def popular(self, limit: int = DEFAULT_POPULAR_LIMIT) -> List[MenuItem]:
        # "Popular" means newest for now; there is no sales ranking yet
        query = select(MenuItem).order_by(MenuItem.created_at.desc(), MenuItem.id.desc()).limit(max(limit, 0))
        return list(self.session.execute(query).scalars().all())

    def get(self, menu_item_id: int) -> MenuItem:
        menu_item = self.session.get(MenuItem, menu_item_id)
        if menu_item is None:
            raise NotFound("Menu item", menu_item_id)
        return menu_item

    def image(self, menu_item_id: int):
        """Return ``(bytes, content_type)`` for the item's stored image."""
        menu_item = self.session.get(MenuItem, menu_item_id)
        if menu_item is None or not menu_item.image_path:
            raise NotFound("Menu item image", menu_item_id)
        return self.images.load(menu_item.image_path)

    # ----- commands -----
    def create(self, data: MenuItemCreate, upload=None) -> MenuItem:
        fields = data.model_dump()
        new_image = self.images.save(upload) if upload is not None else None
        if new_image:
            fields["image_path"] = new_image
        menu_item = MenuItem(**{k: fields.get(k) for k in _COLUMNS})
        with self._discarding_on_failure(new_image):
            with atomic(self.session):
                self.session.add(menu_item)
        logger.info(f"Menu item {menu_item.id} created: {menu_item.name}")
        self.notifier.menu_item_created(menu_item.to_dict())
        return menu_item

    def update(self, menu_item_id: int, data: MenuItemUpdate, upload=None) -> MenuItem:
        menu_item = self.get(menu_item_id)
        fields = provided_fields(data)
        previous_image = menu_item.image_path
        new_image = self.images.save(upload) if upload is not None else None
        if new_image:
            fields["image_path"] = new_image
        with self._discarding_on_failure(new_image):
            with atomic(self.session):
                for key, value in fields.items():
                    if key in _NULLABLE or value is not None:
                        setattr(menu_item, key, value)
        if new_image and previous_image and previous_image != new_image:
            self.images.discard(previous_image)
        logger.info(f"Menu item {menu_item.id} updated")
        self.notifier.menu_item_updated(menu_item.to_dict())
        return menu_item

    def delete(self, menu_item_id: int) -> None:
        menu_item = self.get(menu_item_id)
        affected = self.session.execute(
            select(Order).join(OrderItem).where(OrderItem.menu_item_id == menu_item_id).distinct()
        ).scalars().all()
        with atomic(self.session):
            # Line items keep their copied name and price; only the link goes away
            for line in list(menu_item.order_items):
                line.menu_item = None
            self.session.delete(menu_item)
        logger.info(f"Menu item {menu_item_id} deleted ({len(affected)} orders referenced it)")
        self.notifier.menu_item_deleted(menu_item_id)
        for order in affected:
            self.notifier.order_updated(order.to_dict())

    # ----- helpers -----
    @contextmanager
    def _discarding_on_failure(self, image_path: Optional[str]):
        try:
            yield
        except Exception:
            if image_path:
                self.images.discard(image_path)
            raise
