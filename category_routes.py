import re
import unicodedata
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import create_document, get_documents, serialize_doc, to_object_id
from dependencies import get_db, is_admin
from errors import ApiError, storage_errors
from schemas import Category as CategorySchema

category_router = APIRouter(prefix="/api/v1/category", tags=["Categories"])


class CategoryBody(BaseModel):
    name: Optional[str] = None


def slugify(value: str) -> str:
    condensed = " ".join(str(value).split()).lower()
    ascii_name = (
        unicodedata.normalize("NFKD", condensed)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_name).strip("-")
    if not slug:
        slug = uuid4().hex
    return slug


def _require_name(body: CategoryBody) -> str:
    if not body.name or not body.name.strip():
        raise ApiError(400, "Name is required")
    return body.name.strip()


@category_router.post("/create-category", dependencies=[Depends(is_admin)])
def create_category(body: CategoryBody, response: Response, db=Depends(get_db)):
    name = _require_name(body)
    slug = slugify(name)
    with storage_errors("Error in Category"):
        if db["category"].find_one({"slug": slug}):
            return {"success": False, "message": "Category Already Exists"}
        try:
            doc = create_document(db, "category", CategorySchema(name=name, slug=slug))
        except DuplicateKeyError:
            return {"success": False, "message": "Category Already Exists"}
    response.status_code = 201
    return {"success": True, "message": "New category created", "category": serialize_doc(doc)}


@category_router.put("/update-category/{category_id}", dependencies=[Depends(is_admin)])
def update_category(category_id: str, body: CategoryBody, db=Depends(get_db)):
    name = _require_name(body)
    with storage_errors("Error while updating category"):
        try:
            category = db["category"].find_one_and_update(
                {"_id": to_object_id(category_id)},
                {"$set": {"name": name, "slug": slugify(name), "updated_at": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            return {"success": False, "message": "Category Already Exists"}
    return {"success": True, "message": "Category Updated Successfully", "category": serialize_doc(category)}


@category_router.get("/get-category")
def list_categories(db=Depends(get_db)):
    with storage_errors("Error while getting all categories"):
        categories = get_documents(db, "category")
    return {"success": True, "message": "All Categories List", "category": serialize_doc(categories)}


@category_router.get("/single-category/{slug}")
def single_category(slug: str, db=Depends(get_db)):
    with storage_errors("Error While getting Single Category"):
        category = db["category"].find_one({"slug": slug})
    return {"success": True, "message": "Get Single Category Successfully", "category": serialize_doc(category)}


@category_router.delete("/delete-category/{category_id}", dependencies=[Depends(is_admin)])
def delete_category(category_id: str, db=Depends(get_db)):
    with storage_errors("Error while deleting category"):
        db["category"].delete_one({"_id": to_object_id(category_id)})
    return {"success": True, "message": "Category Deleted Successfully"}
