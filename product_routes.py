import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ValidationError
from pymongo import ReturnDocument

from category_routes import slugify
from database import (
    NO_PHOTO,
    create_document,
    get_documents,
    populate_category,
    serialize_doc,
    to_object_id,
)
from dependencies import get_db, is_admin, require_sign_in
from errors import ApiError, storage_errors
from logger import get_logger
from schemas import Order as OrderSchema, Product as ProductSchema

logger = get_logger(__name__)

product_router = APIRouter(prefix="/api/v1/product", tags=["Products"])

PER_PAGE = 6
LATEST_LIMIT = 12
RELATED_LIMIT = 3


# ----------------------- Models -----------------------
class ProductBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    shipping: Optional[bool] = None


class FilterBody(BaseModel):
    checked: List[str] = []
    radio: List[float] = []


class CheckoutBody(BaseModel):
    cart: List[Any] = []
    payment: Dict[str, Any] = {}


PRODUCT_REQUIRED = [
    ("name", "Name"),
    ("description", "Description"),
    ("price", "Price"),
    ("category", "Category"),
    ("quantity", "Quantity"),
]


def _build_product(body: ProductBody) -> ProductSchema:
    for field, label in PRODUCT_REQUIRED:
        value = getattr(body, field)
        if value is None or value == "":
            raise ApiError(400, f"{label} is Required")
    try:
        return ProductSchema(
            name=body.name.strip(),
            slug=slugify(body.name),
            description=body.description,
            price=body.price,
            category=body.category,
            quantity=body.quantity,
            shipping=bool(body.shipping),
        )
    except ValidationError as e:
        field = e.errors()[0]["loc"][0]
        raise ApiError(400, f"Invalid {field}")


def _cart_product_ids(cart: List[Any]) -> List[str]:
    ids = []
    for item in cart:
        pid = item.get("_id") if isinstance(item, dict) else item
        if pid:
            ids.append(str(pid))
    return ids


# ----------------------- Admin CRUD -----------------------
@product_router.post("/create-product", dependencies=[Depends(is_admin)])
def create_product(body: ProductBody, response: Response, db=Depends(get_db)):
    product = _build_product(body)
    with storage_errors("Error in creating product"):
        doc = create_document(db, "product", product)
    response.status_code = 201
    return {"success": True, "message": "Product Created Successfully", "products": serialize_doc(doc)}


@product_router.put("/update-product/{pid}", dependencies=[Depends(is_admin)])
def update_product(pid: str, body: ProductBody, response: Response, db=Depends(get_db)):
    update = _build_product(body).model_dump()
    update["updated_at"] = datetime.now(timezone.utc)
    with storage_errors("Error in Update product"):
        product = db["product"].find_one_and_update(
            {"_id": to_object_id(pid)},
            {"$set": update},
            projection=NO_PHOTO,
            return_document=ReturnDocument.AFTER,
        )
    response.status_code = 201
    return {"success": True, "message": "Product Updated Successfully", "products": serialize_doc(product)}


@product_router.delete("/delete-product/{pid}", dependencies=[Depends(is_admin)])
def delete_product(pid: str, db=Depends(get_db)):
    with storage_errors("Error while deleting product"):
        db["product"].delete_one({"_id": to_object_id(pid)})
    return {"success": True, "message": "Product Deleted successfully"}


# ----------------------- Browsing -----------------------
@product_router.get("/get-product")
def list_products(db=Depends(get_db)):
    with storage_errors("Error in getting products"):
        products = [
            populate_category(db, p)
            for p in get_documents(db, "product", projection=NO_PHOTO, sort_newest=True, limit=LATEST_LIMIT)
        ]
    return {
        "success": True,
        "countTotal": len(products),
        "message": "All Products",
        "products": serialize_doc(products),
    }


@product_router.get("/get-product/{slug}")
def get_product(slug: str, db=Depends(get_db)):
    with storage_errors("Error while getting single product"):
        product = db["product"].find_one({"slug": slug}, NO_PHOTO)
        if product:
            product = populate_category(db, product)
    return {"success": True, "message": "Single Product Fetched", "product": serialize_doc(product)}


@product_router.post("/product-filters")
def filter_products(body: FilterBody, db=Depends(get_db)):
    args = {}
    if body.checked:
        args["category"] = {"$in": body.checked}
    if len(body.radio) == 2:
        args["price"] = {"$gte": body.radio[0], "$lte": body.radio[1]}
    with storage_errors("Error While Filtering Products"):
        products = get_documents(db, "product", args, projection=NO_PHOTO)
    return {"success": True, "products": serialize_doc(products)}


@product_router.get("/product-count")
def product_count(db=Depends(get_db)):
    with storage_errors("Error in product count"):
        total = db["product"].count_documents({})
    return {"success": True, "total": total}


@product_router.get("/product-list/{page}")
def product_list(page: int, db=Depends(get_db)):
    page = max(page, 1)
    with storage_errors("error in per page ctrl"):
        products = get_documents(
            db, "product", projection=NO_PHOTO, sort_newest=True,
            skip=(page - 1) * PER_PAGE, limit=PER_PAGE,
        )
    return {"success": True, "products": serialize_doc(products)}


@product_router.get("/search/{keyword}")
def search_products(keyword: str, db=Depends(get_db)):
    pattern = {"$regex": re.escape(keyword), "$options": "i"}
    with storage_errors("Error In Search Product API"):
        products = get_documents(
            db, "product", {"$or": [{"name": pattern}, {"description": pattern}]}, projection=NO_PHOTO
        )
    return {"success": True, "products": serialize_doc(products)}


@product_router.get("/related-product/{pid}/{cid}")
def related_products(pid: str, cid: str, db=Depends(get_db)):
    with storage_errors("error while geting related product"):
        products = [
            populate_category(db, p)
            for p in get_documents(
                db, "product", {"category": cid, "_id": {"$ne": to_object_id(pid)}},
                projection=NO_PHOTO, limit=RELATED_LIMIT,
            )
        ]
    return {"success": True, "products": serialize_doc(products)}


@product_router.get("/product-category/{slug}")
def products_by_category(slug: str, db=Depends(get_db)):
    with storage_errors("Error While Getting products"):
        category = db["category"].find_one({"slug": slug})
        products = []
        if category:
            products = get_documents(db, "product", {"category": str(category["_id"])}, projection=NO_PHOTO)
    return {"success": True, "category": serialize_doc(category), "products": serialize_doc(products)}


# ----------------------- Checkout -----------------------
@product_router.post("/checkout")
def checkout(body: CheckoutBody, response: Response, user_id: str = Depends(require_sign_in), db=Depends(get_db)):
    """Record an order for the caller's cart.

    ``payment`` is the result already returned by the payment gateway and is
    stored as-is.
    """
    product_ids = _cart_product_ids(body.cart)
    if not product_ids:
        raise ApiError(400, "Cart is empty")
    order = OrderSchema(products=product_ids, buyer=user_id, payment=body.payment)
    with storage_errors("Error while placing order"):
        doc = create_document(db, "order", order)
    logger.info("Order %s placed by user %s", doc["_id"], user_id)
    response.status_code = 201
    return {"success": True, "message": "Order placed", "order": serialize_doc(doc)}
