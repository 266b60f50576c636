# calculator_api/main.py

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from calculator import CalculationError, Operation, calculate
from calculator_api.models import CalculationPayload, CalculationRecord, InsertResult
from calculator_api.store import CalculationStore, RecordNotFound, StoreFailure

logger = logging.getLogger(__name__)

# All endpoints live on one router; create_app attaches it to the application
router = APIRouter()


def get_store(request: Request) -> CalculationStore:
    """Returns the store the application was built with."""
    return request.app.state.store


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def store_failure(message: str, error: StoreFailure) -> JSONResponse:
    # The client gets the fixed message only; the cause stays in the log
    logger.error("%s: %s", message, error)
    return error_response(500, message)


async def run_calculation(
    store: CalculationStore,
    operation: Operation,
    num1: Optional[str],
    num2: Optional[str] = None,
) -> dict:
    """
    Validates and evaluates one arithmetic request, then records it.
    Validation errors propagate before anything is written. The write is
    awaited, but its outcome never changes the returned result.
    """
    # Raises a CalculationError (400) before anything is written
    computed = calculate(operation, num1, num2)
    # Awaited so the write finishes before responding; failures are handled inside the store
    await store.log_calculation(operation, computed["num1"], computed["num2"], computed["result"])
    return {"result": computed["result"]}


# --- History ---

@router.get("/history", response_model=List[CalculationRecord], response_model_exclude_none=True)
async def history(store: CalculationStore = Depends(get_store)):
    """Returns the 10 most recent calculations, newest first."""
    try:
        return await store.history()
    except StoreFailure as e:
        return store_failure("Failed to fetch history", e)


# --- Arithmetic ---

@router.get("/add")
async def add(num1: Optional[str] = None, num2: Optional[str] = None,
              store: CalculationStore = Depends(get_store)):
    return await run_calculation(store, Operation.ADD, num1, num2)


@router.get("/subtract")
async def subtract(num1: Optional[str] = None, num2: Optional[str] = None,
                   store: CalculationStore = Depends(get_store)):
    return await run_calculation(store, Operation.SUBTRACT, num1, num2)


@router.get("/multiply")
async def multiply(num1: Optional[str] = None, num2: Optional[str] = None,
                   store: CalculationStore = Depends(get_store)):
    return await run_calculation(store, Operation.MULTIPLY, num1, num2)


@router.get("/divide")
async def divide(num1: Optional[str] = None, num2: Optional[str] = None,
                 store: CalculationStore = Depends(get_store)):
    return await run_calculation(store, Operation.DIVIDE, num1, num2)


@router.get("/power")
async def power(num1: Optional[str] = None, num2: Optional[str] = None,
                store: CalculationStore = Depends(get_store)):
    """num1 is the base and num2 the exponent."""
    return await run_calculation(store, Operation.POWER, num1, num2)


@router.get("/sqrt")
async def sqrt(num: Optional[str] = None, store: CalculationStore = Depends(get_store)):
    # Square root takes a single operand, named num
    return await run_calculation(store, Operation.SQRT, num)


@router.get("/modulo")
async def modulo(num1: Optional[str] = None, num2: Optional[str] = None,
                 store: CalculationStore = Depends(get_store)):
    return await run_calculation(store, Operation.MODULO, num1, num2)


# --- Record CRUD ---

@router.post("/calculations", status_code=201, response_model=InsertResult)
async def create_calculation(payload: CalculationPayload, store: CalculationStore = Depends(get_store)):
    """
    Stores a calculation record as given. The result is not recomputed or
    checked against the operands.
    """
    try:
        inserted_id = await store.create(payload)
    except StoreFailure as e:
        return store_failure("Failed to create calculation record", e)
    # Return the store metadata for the new record with status 201
    return InsertResult(insertedId=inserted_id)


@router.get("/calculations/{record_id}", response_model=CalculationRecord, response_model_exclude_none=True)
async def get_calculation(record_id: str, store: CalculationStore = Depends(get_store)):
    try:
        return await store.get(record_id)
    except StoreFailure as e:
        return store_failure("Failed to fetch calculation", e)


@router.put("/calculations/{record_id}")
async def update_calculation(record_id: str, payload: CalculationPayload,
                             store: CalculationStore = Depends(get_store)):
    try:
        await store.update(record_id, payload)
    except StoreFailure as e:
        return store_failure("Failed to update calculation", e)
    return {"message": "Calculation updated successfully"}


@router.delete("/calculations/{record_id}")
async def delete_calculation(record_id: str, store: CalculationStore = Depends(get_store)):
    try:
        await store.delete(record_id)
    except StoreFailure as e:
        return store_failure("Failed to delete calculation", e)
    return {"message": "Calculation deleted successfully"}


# --- Error handlers ---

# Every error leaves the service as a JSON body of the form {"error": message}

async def handle_calculation_error(request: Request, exc: CalculationError) -> JSONResponse:
    return error_response(400, exc.message)


async def handle_not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
    return error_response(404, "Calculation not found")


async def handle_invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug("Rejected request body: %s", exc.errors())
    return error_response(400, "Invalid calculation payload")


def create_app(store: Optional[CalculationStore] = None, lifespan=None) -> FastAPI:
    """
    Builds the calculator application around an already connected store.
    lifespan, when given, is handed to FastAPI to manage startup and shutdown.
    """
    # Initialize the FastAPI application
    app = FastAPI(
        title="Calculator API",
        description="Arithmetic operations with a persistent calculation history.",
        lifespan=lifespan,
    )
    # Routes read the store from app state through get_store
    app.state.store = store
    app.include_router(router)
    # Map domain errors and invalid bodies to JSON error responses
    app.add_exception_handler(CalculationError, handle_calculation_error)
    app.add_exception_handler(RecordNotFound, handle_not_found)
    app.add_exception_handler(RequestValidationError, handle_invalid_body)
    return app
