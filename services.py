"""
Pet catalog and order services.

Each service wraps one MongoDB collection and is built on the process
wide ``Database`` handle it is given.  Methods return plain documents or
result models and raise ``errors.ServiceError`` subclasses; they know
nothing about HTTP.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Type

from pydantic import ValidationError as PydanticValidationError
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.results import InsertOneResult

from database import create_document, get_documents, parse_object_id, storage_errors
from errors import InvalidReference, NotFound, ValidationError
from schemas import (
    DeleteResult,
    Document,
    InsertResult,
    Order,
    OrderUpdate,
    Pet,
    PetUpdate,
    UpdateResult,
)

logger = logging.getLogger(__name__)

RECENT_LIMIT = 6

# Identifiers are always generated by MongoDB; ``date`` is stamped on create.
ID_FIELDS = ("_id", "id")
SERVER_FIELDS = ID_FIELDS + ("date",)

# Pydantic error types that mean "required field not given".
MISSING_ERRORS = ("missing", "string_too_short")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _strip_ids(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in payload.items() if k not in ID_FIELDS}


def _validate(
    model: Type[Document], payload: Dict[str, Any], missing_message: Optional[str] = None
) -> Document:
    """Validate ``payload`` against ``model`` or raise ``ValidationError``.

    Missing or empty required fields are reported with ``missing_message``;
    any other problem is reported per field.
    """
    try:
        return model.model_validate(_strip_ids(payload))
    except PydanticValidationError as exc:
        required = {name for name, f in model.model_fields.items() if f.is_required()}
        problems = []
        for err in exc.errors():
            field = ".".join(str(part) for part in err["loc"])
            if (
                missing_message
                and err["type"] in MISSING_ERRORS
                and err["loc"]
                and err["loc"][0] in required
            ):
                raise ValidationError(missing_message) from exc
            problems.append(f"{field}: {err['msg']}")
        raise ValidationError("Invalid fields: " + "; ".join(problems)) from exc


def _insert_result(result: InsertOneResult) -> InsertResult:
    return InsertResult(acknowledged=result.acknowledged, insertedId=str(result.inserted_id))


class CollectionService:
    """Fetch, partial update and delete by id, shared by both collections."""

    collection_name = ""
    label = "Record"
    update_model: Type[Document] = Document

    def __init__(self, db: Database, now: Callable[[], datetime] = utcnow):
        self.db = db
        self.now = now

    @property
    def collection(self) -> Collection:
        return self.db[self.collection_name]

    def get(self, record_id: str) -> Dict[str, Any]:
        oid = parse_object_id(record_id)
        doc = None
        if oid is not None:
            with storage_errors(f"find in {self.collection_name}"):
                doc = self.collection.find_one({"_id": oid})
        if doc is None:
            raise NotFound(f"{self.label} not found")
        return doc

    def update(self, record_id: str, payload: Dict[str, Any]) -> UpdateResult:
        """Merge the supplied fields into the record; unknown ids match nothing.

        Server-managed fields (identifiers, ``date``) are ignored.
        """
        payload = {k: v for k, v in payload.items() if k not in SERVER_FIELDS}
        changes = _validate(self.update_model, payload).to_document()
        oid = parse_object_id(record_id)
        if oid is None:
            return UpdateResult(acknowledged=True, matchedCount=0, modifiedCount=0)

        with storage_errors(f"update in {self.collection_name}"):
            if not changes:
                # $set rejects an empty document
                found = self.collection.find_one({"_id": oid}, {"_id": 1}) is not None
                return UpdateResult(acknowledged=True, matchedCount=int(found), modifiedCount=0)
            result = self.collection.update_one({"_id": oid}, {"$set": changes})

        logger.info(
            "Updated %s %s: matched=%s modified=%s",
            self.label.lower(), record_id, result.matched_count, result.modified_count,
        )
        return UpdateResult(
            acknowledged=result.acknowledged,
            matchedCount=result.matched_count,
            modifiedCount=result.modified_count,
        )

    def delete(self, record_id: str) -> DeleteResult:
        oid = parse_object_id(record_id)
        if oid is None:
            return DeleteResult(acknowledged=True, deletedCount=0)

        with storage_errors(f"delete in {self.collection_name}"):
            result = self.collection.delete_one({"_id": oid})

        logger.info("Deleted %s %s: count=%s", self.label.lower(), record_id, result.deleted_count)
        return DeleteResult(acknowledged=result.acknowledged, deletedCount=result.deleted_count)


class PetService(CollectionService):
    """Pets listed for sale."""

    collection_name = "pets"
    label = "Pet"
    update_model = PetUpdate

    def create(self, payload: Dict[str, Any]) -> InsertResult:
        pet = _validate(Pet, payload, "Missing required fields: name, category")
        doc = pet.to_document()
        doc["date"] = self.now()

        with storage_errors("insert pet"):
            result = create_document(self.db, self.collection_name, doc)

        logger.info("Created pet %s (%s)", result.inserted_id, doc["category"])
        return _insert_result(result)

    def list_pets(self, email: Optional[str] = None, category: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if email:
            query["owner_email"] = email
        if category:
            query["category"] = category

        with storage_errors("find pets"):
            return get_documents(self.db, self.collection_name, query)

    def list_recent(self) -> List[Dict[str, Any]]:
        with storage_errors("find recent pets"):
            return get_documents(
                self.db, self.collection_name, limit=RECENT_LIMIT, sort=[("date", -1)]
            )


class OrderService(CollectionService):
    """Orders placed against pets.

    An order copies the pet's name and price when it is created; later
    edits to the pet do not reach existing orders, and deleting a pet
    leaves its orders in place.
    """

    collection_name = "orders"
    label = "Order"
    update_model = OrderUpdate

    def __init__(self, db: Database, pets: PetService, now: Callable[[], datetime] = utcnow):
        super().__init__(db, now)
        self.pets = pets

    def create(self, payload: Dict[str, Any]) -> InsertResult:
        order = _validate(Order, payload, "productId & buyerName are required")

        try:
            pet = self.pets.get(order.productId)
        except NotFound as exc:
            raise InvalidReference("Invalid productId") from exc

        doc = order.to_document()
        doc["productName"] = pet.get("name")
        if order.price is None:
            doc["price"] = pet.get("price") or 0
        if order.quantity is None:
            doc["quantity"] = 1
        for field in ("address", "phone", "additionalNotes"):
            if getattr(order, field) is None:
                doc[field] = ""
        doc["date"] = self.now()

        with storage_errors("insert order"):
            result = create_document(self.db, self.collection_name, doc)

        logger.info("Created order %s for pet %s", result.inserted_id, order.productId)
        return _insert_result(result)

    def list_orders(self, email: Optional[str] = None) -> List[Dict[str, Any]]:
        query: Dict[str, Any] = {}
        if email:
            query["email"] = email

        with storage_errors("find orders"):
            return get_documents(self.db, self.collection_name, query)
