import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database
from pymongo.errors import PyMongoError

from config import settings
from database import connect, serialize_doc
from errors import ServiceError
from logging_config import setup_logging
from schemas import DeleteResult, InsertResult, UpdateResult
from services import OrderService, PetService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_pet_service(db: Database = Depends(get_db)) -> PetService:
    return PetService(db)


def get_order_service(
    db: Database = Depends(get_db), pets: PetService = Depends(get_pet_service)
) -> OrderService:
    return OrderService(db, pets)


@router.get("/", response_class=PlainTextResponse)
def read_root():
    return "Pet shop server is live"


@router.get("/test")
def database_status(db: Database = Depends(get_db)):
    response = {
        "backend": "Running",
        "database": "Not Available",
        "database_name": None,
        "connection_status": "Not Connected",
        "collections": [],
    }
    if db is None:
        return response
    response["database_name"] = db.name
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "Connected & Working"
        response["connection_status"] = "Connected"
    except PyMongoError as e:
        response["database"] = f"Connected but Error: {str(e)[:50]}"
    return response


# Pets
@router.post("/pets", response_model=InsertResult)
def create_pet(payload: Dict[str, Any] = Body(...), pets: PetService = Depends(get_pet_service)):
    return pets.create(payload)


@router.get("/pets")
def list_pets(
    email: Optional[str] = None,
    category: Optional[str] = None,
    pets: PetService = Depends(get_pet_service),
) -> List[Dict[str, Any]]:
    return [serialize_doc(d) for d in pets.list_pets(email=email, category=category)]


# Declared before /pets/{pet_id} so "recent" is not read as an id.
@router.get("/pets/recent")
def list_recent_pets(pets: PetService = Depends(get_pet_service)) -> List[Dict[str, Any]]:
    return [serialize_doc(d) for d in pets.list_recent()]


@router.get("/pets/{pet_id}")
def get_pet(pet_id: str, pets: PetService = Depends(get_pet_service)) -> Dict[str, Any]:
    return serialize_doc(pets.get(pet_id))


@router.patch("/pets/{pet_id}", response_model=UpdateResult)
def update_pet(
    pet_id: str,
    payload: Dict[str, Any] = Body(...),
    pets: PetService = Depends(get_pet_service),
):
    return pets.update(pet_id, payload)


@router.delete("/pets/{pet_id}", response_model=DeleteResult)
def delete_pet(pet_id: str, pets: PetService = Depends(get_pet_service)):
    return pets.delete(pet_id)


# Orders
@router.post("/orders", response_model=InsertResult)
def create_order(payload: Dict[str, Any] = Body(...), orders: OrderService = Depends(get_order_service)):
    return orders.create(payload)


@router.get("/orders")
def list_orders(
    email: Optional[str] = None, orders: OrderService = Depends(get_order_service)
) -> List[Dict[str, Any]]:
    return [serialize_doc(d) for d in orders.list_orders(email=email)]


@router.get("/orders/{order_id}")
def get_order(order_id: str, orders: OrderService = Depends(get_order_service)) -> Dict[str, Any]:
    return serialize_doc(orders.get(order_id))


@router.patch("/orders/{order_id}", response_model=UpdateResult)
def update_order(
    order_id: str,
    payload: Dict[str, Any] = Body(...),
    orders: OrderService = Depends(get_order_service),
):
    return orders.update(order_id, payload)


@router.delete("/orders/{order_id}", response_model=DeleteResult)
def delete_order(order_id: str, orders: OrderService = Depends(get_order_service)):
    return orders.delete(order_id)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    logger.info("%s %s rejected: %s", request.method, request.url.path, problems)
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application.

    When ``database`` is given it is used as-is and nothing is opened or
    closed; otherwise one MongoClient is created at startup from
    ``settings`` and closed at shutdown.
    """
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if database is None:
            client, app.state.db = connect(settings.database_url, settings.database_name)
            try:
                client.admin.command("ping")
                logger.info("Connected to MongoDB database %s", settings.database_name)
            except PyMongoError as exc:
                logger.error("MongoDB ping failed: %s", exc)
        yield
        if client is not None:
            client.close()

    app = FastAPI(title=settings.project_name, lifespan=lifespan)
    app.state.db = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logger.info("Server running on port %s", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
