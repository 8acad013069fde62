"""
Service repository: one store round-trip per catalog operation.

Design notes
------------
- Callers run the request-level field rules first; ``create_service``
  and ``update_service`` additionally pass the merged record through
  ``ServiceDocument`` before anything is written, so the store never
  accepts a record the schema would reject.
- Identifiers are UUID strings.  A value that does not parse as a UUID
  raises ``InvalidIdentifier`` without touching the store.
- Any ``SQLAlchemyError`` is logged and re-raised as ``StoreUnavailable``;
  there are no retries.
- Functions flush but do not commit; the transaction boundary is owned
  by the ``get_db`` dependency in the router layer.
"""
import logging
import uuid
from typing import Any, Mapping

from pydantic import ValidationError
from sqlalchemy import desc, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from virtyum.errors import (
    InvalidCategory,
    InvalidIdentifier,
    NotFound,
    StoreUnavailable,
    ValidationFailure,
)
from virtyum.models import Service, utcnow
from virtyum.schemas import ServiceDocument
from virtyum.validation import SERVICE_CATEGORIES, is_valid_category

logger = logging.getLogger(__name__)

_DOCUMENT_FIELDS = tuple(ServiceDocument.model_fields)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def parse_identifier(raw: str, message: str = "Invalid service ID") -> str:
    """Return the canonical form of *raw* or raise ``InvalidIdentifier``."""
    try:
        return str(uuid.UUID(str(raw)))
    except ValueError:
        raise InvalidIdentifier(message, raw) from None


def as_number(value: float) -> int | float:
    """Whole-valued prices come back from the Float column as floats; report them as ints."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def format_price(price: float) -> str:
    """``1299`` -> ``"$1,299"``; ``899.5`` -> ``"$899.50"``."""
    if float(price).is_integer():
        return f"${int(price):,}"
    return f"${price:,.2f}"


def document_errors(exc: ValidationError) -> list[str]:
    messages = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"])
        messages.append(f"{field}: {error['msg']}" if field else error["msg"])
    return messages


def _service_to_dict(service: Service) -> dict:
    """Serialise a Service ORM instance to its public JSON shape."""
    return {
        "id": service.id,
        "name": service.name,
        "category": service.category,
        "price": as_number(service.price),
        "formattedPrice": format_price(service.price),
        "duration": service.duration,
        "status": service.status,
        "description": service.description,
        "clients": service.clients,
        "createdAt": service.created_at.isoformat() if service.created_at else None,
        "updatedAt": service.updated_at.isoformat() if service.updated_at else None,
    }


def _document_fields(service: Service) -> dict:
    return {field: getattr(service, field) for field in _DOCUMENT_FIELDS}


def _to_document(payload: Mapping[str, Any], message: str) -> ServiceDocument:
    try:
        return ServiceDocument(**payload)
    except ValidationError as exc:
        raise ValidationFailure(document_errors(exc), message=message) from exc


async def _fetch(db: AsyncSession, service_id: str, not_found_message: str) -> Service:
    canonical = parse_identifier(service_id)
    try:
        result = await db.execute(select(Service).where(Service.id == canonical))
    except SQLAlchemyError as exc:
        logger.exception("Service lookup failed for id=%s", canonical)
        raise StoreUnavailable("Internal server error", str(exc)) from exc
    service = result.scalar_one_or_none()
    if service is None:
        raise NotFound(not_found_message, service_id)
    return service


# ---------------------------------------------------------------------------
# Public repository functions
# ---------------------------------------------------------------------------

async def list_services(
    db: AsyncSession,
    search: str | None = None,
    status: str | None = None,
) -> list[dict]:
    """
    Return all services ordered by creation date (newest first).

    *search* matches name or description case-insensitively; *status*
    keeps only services in that state.  Both are optional.
    """
    q = select(Service)
    if search:
        pattern = f"%{search.lower()}%"
        q = q.where(
            or_(
                func.lower(Service.name).like(pattern),
                func.lower(Service.description).like(pattern),
            )
        )
    if status:
        q = q.where(Service.status == status)
    q = q.order_by(desc(Service.created_at))

    try:
        result = await db.execute(q)
    except SQLAlchemyError as exc:
        logger.exception("Listing services failed")
        raise StoreUnavailable("Internal server error while fetching services", str(exc)) from exc
    return [_service_to_dict(s) for s in result.scalars().all()]


async def create_service(db: AsyncSession, payload: Mapping[str, Any]) -> dict:
    """
    Persist a new service and return its serialised dict.

    ``status`` and ``clients`` fall back to ``Nuevo`` and ``0`` when the
    payload omits them; id and timestamps are assigned here.
    """
    document = _to_document(
        {k: v for k, v in payload.items() if v is not None},
        message="Validation error",
    )
    service = Service(**document.model_dump())
    db.add(service)
    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Creating service failed")
        raise StoreUnavailable("Internal server error while creating service", str(exc)) from exc

    logger.info("Created service %s (%s)", service.id, service.name, extra={"service_id": service.id})
    return _service_to_dict(service)


async def get_service(db: AsyncSession, service_id: str) -> dict:
    """Return the service identified by *service_id*."""
    service = await _fetch(db, service_id, "Service not found")
    return _service_to_dict(service)


async def update_service(
    db: AsyncSession,
    service_id: str,
    changes: Mapping[str, Any],
) -> dict:
    """
    Overlay *changes* onto the stored service and return the result.

    Only keys present in *changes* are applied, so an explicit ``0`` or
    empty value is honoured (and then validated) rather than ignored.
    ``updatedAt`` moves forward even when *changes* is empty.
    """
    service = await _fetch(db, service_id, "Service not found for update")

    merged = _document_fields(service)
    merged.update({k: v for k, v in changes.items() if k in merged})
    document = _to_document(merged, message="Validation error on update")

    for field, value in document.model_dump().items():
        setattr(service, field, value)
    service.updated_at = utcnow()

    try:
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Updating service %s failed", service.id)
        raise StoreUnavailable("Internal server error while updating service", str(exc)) from exc

    logger.info("Updated service %s", service.id, extra={"service_id": service.id})
    return _service_to_dict(service)


async def delete_service(db: AsyncSession, service_id: str) -> dict:
    """Remove the service and return ``{id, name}`` of what was deleted."""
    service = await _fetch(db, service_id, "Service not found for deletion")
    deleted = {"id": service.id, "name": service.name}

    try:
        await db.delete(service)
        await db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Deleting service %s failed", service.id)
        raise StoreUnavailable("Internal server error while deleting service", str(exc)) from exc

    logger.info("Deleted service %s", deleted["id"], extra={"service_id": deleted["id"]})
    return deleted


async def list_services_by_category(db: AsyncSession, category: str) -> dict:
    """
    Return ``{category, count, services}`` for one category, newest first.

    An unknown category raises ``InvalidCategory`` before any query runs.
    """
    if not is_valid_category(category):
        raise InvalidCategory(category, SERVICE_CATEGORIES)

    q = (
        select(Service)
        .where(Service.category == category)
        .order_by(desc(Service.created_at))
    )
    try:
        result = await db.execute(q)
    except SQLAlchemyError as exc:
        logger.exception("Listing services for category %s failed", category)
        raise StoreUnavailable("Internal server error", str(exc)) from exc

    services = [_service_to_dict(s) for s in result.scalars().all()]
    return {"category": category, "count": len(services), "services": services}
