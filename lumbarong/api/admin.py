# lumbarong/api/admin.py
# Администрирование каталога: удаление любого товара.
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lumbarong.core.errors import NotFoundError
from lumbarong.core.security import Principal, get_db, require_roles
from lumbarong.models.product import Product
from lumbarong.models.user import RoleEnum
from lumbarong.schemas.common import MessageResponse
from lumbarong.services.catalog import remove_product

router = APIRouter()

admin_only = require_roles(RoleEnum.admin)


@router.delete("/products/{product_id}", response_model=MessageResponse)
def delete_any_product(
    product_id: int,
    principal: Principal = Depends(admin_only),
    db: Session = Depends(get_db),
):
    product = db.get(Product, product_id, with_for_update=True)
    if product is None:
        raise NotFoundError("Product not found")
    remove_product(db, product)
    return {"message": "Product removed successfully"}
