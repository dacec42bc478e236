from __future__ import annotations

import csv
import io
import logging
from datetime import date, datetime, time
from typing import Annotated, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlmodel import Session

from . import crud, schemas
from .config import get_settings
from .database import engine, get_session, init_db
from .errors import DegradedWriteError, InvalidStatusTransition, OrderValidationError, StorageError
from .models import Order, OrderStatus, OrderType
from .receipt import render_receipt

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
)

app = FastAPI(title="Coffee Shop POS", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    init_db()
    with Session(engine) as session:
        crud.ensure_default_menu(session)


def verify_access_key(
    x_access_key: Annotated[str | None, Header(alias="X-Access-Key")] = None
) -> None:
    if settings.access_key and x_access_key != settings.access_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access key",
        )


AccessGuard = Annotated[None, Depends(verify_access_key)]


@app.get("/health")
def health_check() -> dict:
    return {"status": "ok"}


@app.get("/menu", response_model=schemas.MenuResponse)
def get_menu(
    _: AccessGuard,
    session: Session = Depends(get_session),
):
    return schemas.MenuResponse(categories=crud.get_menu(session))


@app.get("/orders", response_model=List[schemas.OrderRead])
def list_orders(
    _: AccessGuard,
    limit: int = Query(default=10, ge=1, le=500),
    order_status: Optional[OrderStatus] = Query(default=None, alias="status"),
    session: Session = Depends(get_session),
):
    orders = crud.list_orders(session, limit=limit, status=order_status)
    items = crud.get_items_by_order(session, [order.id for order in orders])
    return [_order_read(order, items[order.id]) for order in orders]


@app.post("/orders", response_model=schemas.OrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    payload: schemas.OrderCreate,
    _: AccessGuard,
    x_user_id: Annotated[str | None, Header(alias="X-User-Id")] = None,
    session: Session = Depends(get_session),
):
    try:
        order = crud.create_order(
            session,
            payload.customer_name,
            payload.order_type,
            payload.items,
            payload.notes,
            x_user_id,
            atomic=settings.atomic_order_writes,
            verify_prices=settings.verify_prices,
            extra_shot_price=settings.extra_shot_price_cents,
            queue_prefix=settings.queue_prefix,
        )
    except OrderValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message) from exc
    except DegradedWriteError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Order saved without its items", "order_id": exc.order_id, "degraded": True},
        ) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create order"
        ) from exc
    return _order_read(order, crud.get_order_items(session, order.id))


@app.get("/orders/export", response_class=PlainTextResponse)
def export_orders(
    _: AccessGuard,
    limit: int = Query(default=500, ge=1, le=5000),
    session: Session = Depends(get_session),
):
    orders = crud.list_orders(session, limit=limit)
    items = crud.get_items_by_order(session, [order.id for order in orders])
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([
        "id",
        "queue_number",
        "customer_name",
        "order_type",
        "status",
        "item_count",
        "total_cents",
        "created_at",
    ])
    for order in orders:
        writer.writerow([
            order.id,
            order.queue_number or "",
            order.customer_name,
            OrderType(order.order_type).value,
            OrderStatus(order.status).value,
            sum(item.quantity for item in items[order.id]),
            order.total_cents,
            order.created_at.isoformat() if order.created_at else "",
        ])
    headers = {
        "Content-Disposition": "attachment; filename=orders.csv",
    }
    return PlainTextResponse(content=buffer.getvalue(), media_type="text/csv", headers=headers)


@app.get("/orders/{order_id}", response_model=schemas.OrderRead)
def get_order(
    order_id: int,
    _: AccessGuard,
    session: Session = Depends(get_session),
):
    order = _get_order_or_404(session, order_id)
    return _order_read(order, crud.get_order_items(session, order_id))


@app.patch("/orders/{order_id}/status", response_model=schemas.OrderHeaderRead)
def update_order_status(
    order_id: int,
    payload: schemas.OrderStatusUpdate,
    _: AccessGuard,
    session: Session = Depends(get_session),
):
    try:
        order = crud.update_order_status(
            session, order_id, payload.status, strict=settings.strict_status_flow
        )
    except InvalidStatusTransition as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update order status"
        ) from exc
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return schemas.OrderHeaderRead.model_validate(order)


@app.get("/orders/{order_id}/receipt", response_class=PlainTextResponse)
def get_receipt(
    order_id: int,
    _: AccessGuard,
    session: Session = Depends(get_session),
):
    order = _get_order_or_404(session, order_id)
    items = crud.get_order_items(session, order_id)
    return PlainTextResponse(content=render_receipt(order, items, settings.receipt_settings()))


@app.get("/reports/summary", response_model=schemas.SummaryResponse)
def summary(
    _: AccessGuard,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    session: Session = Depends(get_session),
):
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end_date is before start_date")
    start_dt = datetime.combine(start_date, time.min) if start_date else None
    end_dt = datetime.combine(end_date, time.max) if end_date else None
    data = crud.compute_summary(session, start_dt, end_dt)
    return schemas.SummaryResponse(**data)


def _get_order_or_404(session: Session, order_id: int) -> Order:
    order = crud.get_order(session, order_id)
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return order


def _order_read(order: Order, items) -> schemas.OrderRead:
    header = schemas.OrderHeaderRead.model_validate(order)
    return schemas.OrderRead(
        **header.model_dump(),
        items=[schemas.OrderItemRead.model_validate(item) for item in items],
    )
