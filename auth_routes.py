from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

import settings
from auth_helper import compare_password, hash_password
from database import (
    PRIVATE_USER_FIELDS,
    create_document,
    get_documents,
    populate_order,
    public_user,
    serialize_doc,
    to_object_id,
)
from dependencies import get_db, get_token_service, is_admin, require_sign_in
from errors import ApiError, storage_errors
from logger import get_logger
from schemas import ADMIN_ROLE, USER_ROLE, OrderStatus, User as UserSchema
from tokens import TokenService

logger = get_logger(__name__)

auth_router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

MIN_PASSWORD_LENGTH = 6


# ----------------------- Models -----------------------
# Text fields accept JSON numbers (a phone sent as 91234567 is stored as "91234567").
class RegisterBody(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Any] = None
    answer: Optional[str] = None


class LoginBody(BaseModel):
    # Anything that is not a string counts as missing credentials.
    email: Optional[Any] = None
    password: Optional[Any] = None


class ForgotPasswordBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)

    email: Optional[str] = None
    answer: Optional[str] = None
    new_password: Optional[str] = Field(None, alias="newPassword")


class ProfileBody(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[Any] = None


class OrderStatusBody(BaseModel):
    status: Optional[str] = None


class RoleBody(BaseModel):
    role: Optional[int] = None


# Checked in this order; only the first missing field is reported.
REGISTER_REQUIRED = [
    ("name", "Name"),
    ("email", "Email"),
    ("password", "Password"),
    ("phone", "Phone no"),
    ("address", "Address"),
    ("answer", "Answer"),
]


def _missing(value) -> bool:
    return value is None or value == ""


def _now():
    return datetime.now(timezone.utc)


def build_profile_update(current: dict, body: ProfileBody, hashed_password: Optional[str] = None) -> dict:
    """Fields to $set for a profile update, starting from the stored user.

    Anything the caller left out keeps the value in ``current``. The email is
    never part of the update.
    """
    return {
        "name": body.name.strip() if body.name else current.get("name"),
        "password": hashed_password or current.get("password"),
        "phone": body.phone or current.get("phone"),
        "address": body.address or current.get("address"),
    }


# ----------------------- Auth -----------------------
@auth_router.post("/register")
def register(body: RegisterBody, response: Response, db=Depends(get_db)):
    for field, label in REGISTER_REQUIRED:
        if _missing(getattr(body, field)):
            return {"message": f"{label} is Required"}

    with storage_errors("Error in Registration"):
        if db["user"].find_one({"email": body.email}):
            return {"success": False, "message": "Already Register please login"}

        hashed = hash_password(body.password)
        if hashed is None:
            raise ApiError(400, "Password could not be hashed")
        try:
            user = UserSchema(
                name=body.name.strip(),
                email=body.email,
                password=hashed,
                phone=body.phone,
                address=body.address,
                answer=body.answer,
                role=USER_ROLE,
            )
        except ValidationError as e:
            field = e.errors()[0]["loc"][0]
            raise ApiError(400, f"Invalid {field}")

        try:
            doc = create_document(db, "user", user)
        except DuplicateKeyError:
            return {"success": False, "message": "Already Register please login"}

    logger.info("Registered user %s", doc["_id"])
    response.status_code = 201
    return {"success": True, "message": "User Register Successfully", "user": public_user(doc)}


@auth_router.post("/login")
def login(body: LoginBody, db=Depends(get_db), tokens: TokenService = Depends(get_token_service)):
    if not isinstance(body.email, str) or not isinstance(body.password, str) \
            or _missing(body.email) or _missing(body.password):
        raise ApiError(404, "Invalid email or password")

    with storage_errors("Error in login"):
        user = db["user"].find_one({"email": body.email})

    if not user:
        if settings.GENERIC_LOGIN_ERRORS:
            raise ApiError(404, "Invalid email or password")
        raise ApiError(404, "Email is not registered")
    if not compare_password(body.password, user.get("password", "")):
        if settings.GENERIC_LOGIN_ERRORS:
            raise ApiError(404, "Invalid email or password")
        return {"success": False, "message": "Invalid Password"}

    token = tokens.issue(str(user["_id"]))
    return {"success": True, "message": "login successfully", "user": public_user(user), "token": token}


@auth_router.post("/forgot-password")
def forgot_password(body: ForgotPasswordBody, db=Depends(get_db)):
    if _missing(body.email):
        raise ApiError(400, "Email is required")
    if _missing(body.answer):
        raise ApiError(400, "Answer is required")
    if _missing(body.new_password):
        raise ApiError(400, "New Password is required")

    with storage_errors("Something went wrong"):
        user = db["user"].find_one({"email": body.email, "answer": body.answer})
        if not user:
            raise ApiError(404, "Wrong Email Or Answer")
        hashed = hash_password(body.new_password)
        if hashed is None:
            raise ApiError(400, "Password could not be hashed")
        db["user"].update_one({"_id": user["_id"]}, {"$set": {"password": hashed, "updated_at": _now()}})

    return {"success": True, "message": "Password Reset Successfully"}


@auth_router.get("/user-auth")
def user_auth(user_id: str = Depends(require_sign_in)):
    return {"ok": True}


@auth_router.get("/admin-auth", dependencies=[Depends(is_admin)])
def admin_auth():
    return {"ok": True}


# ----------------------- Profile -----------------------
@auth_router.put("/profile")
def update_profile(body: ProfileBody, user_id: str = Depends(require_sign_in), db=Depends(get_db)):
    hashed = None
    if body.password:
        if len(body.password) < MIN_PASSWORD_LENGTH:
            raise ApiError(400, "Password is required and 6 character long")
        hashed = hash_password(body.password)
        if hashed is None:
            raise ApiError(400, "Password could not be hashed")

    with storage_errors("Error While Updating profile"):
        # Read then write with no transaction: two concurrent updates to the
        # same user race and the later write wins.
        user = db["user"].find_one({"_id": to_object_id(user_id)})
        if not user:
            raise ApiError(404, "User not found")
        changes = build_profile_update(user, body, hashed)
        changes["updated_at"] = _now()
        updated = db["user"].find_one_and_update(
            {"_id": user["_id"]},
            {"$set": changes},
            projection=PRIVATE_USER_FIELDS,
            return_document=ReturnDocument.AFTER,
        )

    return {"success": True, "message": "Profile Updated Successfully", "updatedUser": serialize_doc(updated)}


# ----------------------- Orders -----------------------
@auth_router.get("/orders")
def get_orders(user_id: str = Depends(require_sign_in), db=Depends(get_db)):
    with storage_errors("Error While Getting Orders"):
        orders = [populate_order(db, o) for o in get_documents(db, "order", {"buyer": user_id})]
    return {"success": True, "message": "Orders", "orders": serialize_doc(orders)}


@auth_router.get("/all-orders", dependencies=[Depends(is_admin)])
def get_all_orders(db=Depends(get_db)):
    with storage_errors("Error While Getting Orders"):
        orders = [populate_order(db, o) for o in get_documents(db, "order", sort_newest=True)]
    return {"success": True, "message": "All Orders", "orders": serialize_doc(orders)}


@auth_router.put("/order-status/{order_id}", dependencies=[Depends(is_admin)])
def update_order_status(order_id: str, body: OrderStatusBody, db=Depends(get_db)):
    if body.status not in OrderStatus.values():
        raise ApiError(400, "Invalid order status")

    with storage_errors("Error While Updating Order"):
        order = db["order"].find_one_and_update(
            {"_id": to_object_id(order_id)},
            {"$set": {"status": body.status, "updated_at": _now()}},
            return_document=ReturnDocument.AFTER,
        )
    if order is None:
        logger.info("Order %s not found for status update", order_id)
    return {"success": True, "message": "Order status updated", "order": serialize_doc(order)}


# ----------------------- Admin: users -----------------------
@auth_router.get("/all-users", dependencies=[Depends(is_admin)])
def get_all_users(db=Depends(get_db)):
    with storage_errors("Error while getting users"):
        users = get_documents(db, "user", projection=PRIVATE_USER_FIELDS, sort_newest=True)
    return {"success": True, "message": "All Users", "users": serialize_doc(users)}


@auth_router.put("/update-role/{user_id}", dependencies=[Depends(is_admin)])
def update_role(user_id: str, body: RoleBody, db=Depends(get_db)):
    if body.role not in (USER_ROLE, ADMIN_ROLE):
        raise ApiError(400, "Role must be 0 or 1")

    with storage_errors("Error while updating role"):
        user = db["user"].find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": {"role": body.role, "updated_at": _now()}},
            projection=PRIVATE_USER_FIELDS,
            return_document=ReturnDocument.AFTER,
        )
    return {"success": True, "message": "User role updated successfully", "user": serialize_doc(user)}


@auth_router.delete("/delete-user/{user_id}", dependencies=[Depends(is_admin)])
def delete_user(user_id: str, db=Depends(get_db)):
    with storage_errors("Error while deleting user"):
        user = db["user"].find_one_and_delete({"_id": to_object_id(user_id)}, projection=PRIVATE_USER_FIELDS)
    return {"success": True, "message": "User deleted successfully", "user": serialize_doc(user)}
