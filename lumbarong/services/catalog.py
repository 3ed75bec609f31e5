# lumbarong/services/catalog.py
# Удаление товара из каталога с сохранением истории заказов.

import logging

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from lumbarong.models.order import OrderItem
from lumbarong.models.product import Product
from lumbarong.models.wishlist import WishlistItem

logger = logging.getLogger(__name__)


def remove_product(db: Session, product: Product) -> None:
    """
    Удаляет товар. Позиции прошлых заказов остаются со своими ценой и количеством,
    но теряют ссылку на товар; записи в списках желаний удаляются.

    Связи обнуляются явно: SQLite без PRAGMA foreign_keys не выполняет ON DELETE.
    """
    product_id = product.id
    db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product_id)
        .values(product_id=None)
        .execution_options(synchronize_session=False)
    )
    db.execute(delete(WishlistItem).where(WishlistItem.product_id == product_id))
    db.delete(product)
    db.commit()
    logger.info(f"Product {product_id} removed from catalog")
