"""
MongoDB access helpers.

The client is created once per process by ``connect`` and the resulting
``Database`` handle is handed to the services explicitly.  Documents are
plain dicts; ``serialize_doc`` turns them into JSON-friendly dicts for
responses.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from bson import ObjectId
from bson.errors import BSONError, InvalidId
from pydantic import BaseModel
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError
from pymongo.results import InsertOneResult

from errors import StorageError

logger = logging.getLogger(__name__)


def connect(url: str, name: str) -> Tuple[MongoClient, Database]:
    """Open a client for ``url`` and return it with the named database.

    pymongo connects lazily, so this does not touch the network; callers
    that want to fail fast should ``ping`` afterwards.
    """
    client = MongoClient(url)
    return client, client[name]


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return ``value`` as an ObjectId, or None if it is not a valid one."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


@contextmanager
def storage_errors(action: str) -> Iterator[None]:
    """Re-raise any pymongo failure inside the block as ``StorageError``.

    Documents that cannot be encoded to BSON (integers wider than 8 bytes,
    keys containing NUL) fail before reaching the server, outside
    ``PyMongoError``.
    """
    try:
        yield
    except (PyMongoError, BSONError, OverflowError) as exc:
        logger.error("MongoDB %s failed: %s", action, exc)
        raise StorageError(str(exc)) from exc


def create_document(
    db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]
) -> InsertOneResult:
    if isinstance(data, BaseModel):
        doc = data.model_dump(exclude_unset=True)
    else:
        doc = dict(data)
    return db[collection_name].insert_one(doc)


def get_documents(
    db: Database,
    collection_name: str,
    filter_dict: Optional[Dict[str, Any]] = None,
    limit: Optional[int] = None,
    sort: Optional[Sequence[Tuple[str, int]]] = None,
) -> List[Dict[str, Any]]:
    cursor = db[collection_name].find(filter_dict or {})
    if sort:
        cursor = cursor.sort(list(sort))
    if limit:
        cursor = cursor.limit(limit)
    return list(cursor)


def serialize_doc(doc: Dict[str, Any]):
    if not doc:
        return doc
    out = {}
    for k, v in doc.items():
        if k == "_id":
            out["id"] = str(v)
        elif isinstance(v, ObjectId):
            out[k] = str(v)
        elif hasattr(v, "isoformat"):
            out[k] = v.isoformat()
        else:
            out[k] = v
    return out
