from fastapi import APIRouter, Depends, HTTPException, Response, status
from typing import List

from dependencies import get_current_admin, get_storage
from log_utils import log
import schemas

router = APIRouter(prefix="/api", tags=["products"])


@router.get("/products", response_model=List[schemas.Product])
async def read_products(storage=Depends(get_storage)):
    return await storage.get_all_products()


@router.get("/products/{product_id}", response_model=schemas.Product)
async def read_product(product_id: int, storage=Depends(get_storage)):
    db_product = await storage.get_product(product_id)
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product


@router.get("/categories")
async def get_categories(storage=Depends(get_storage)):
    products = await storage.get_all_products()
    categories = sorted(set(product["category"] for product in products if product["category"]))
    return {"categories": categories}


# ========== PROTECTED PRODUCT ENDPOINTS (Admin Only) ==========
@router.post("/products", response_model=schemas.Product, status_code=status.HTTP_201_CREATED)
async def create_product(
    product: schemas.ProductCreate,
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    db_product = await storage.create_product(product.model_dump())
    log(f"product {db_product['id']} created by {current_admin['username']}")
    return db_product


@router.put("/products/{product_id}", response_model=schemas.Product)
async def update_product(
    product_id: int,
    product: schemas.ProductUpdate,
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    db_product = await storage.update_product(product_id, product.model_dump())
    if db_product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return db_product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    storage=Depends(get_storage),
    current_admin=Depends(get_current_admin),
):
    success = await storage.delete_product(product_id)
    if not success:
        raise HTTPException(status_code=404, detail="Product not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
