"""
Field rules for candidate Service and Task payloads.

Every rule is evaluated independently so a single response can report
all problems at once.  Rules only inspect the keys they own and never
mutate the payload.

In *partial* mode (updates) a rule runs only when its key is present in
the payload; an explicit ``None`` is still a value and is checked.  In
full mode (creates) the required fields must be present, while
``status`` and ``clients`` may be omitted because the store supplies
defaults for them.
"""
import math
from typing import Any, Callable, Mapping

SERVICE_CATEGORIES: tuple[str, ...] = (
    "Digital",
    "Social",
    "Contenido",
    "Diseño",
    "Desarrollo",
    "Análisis",
)

SERVICE_STATUSES: tuple[str, ...] = ("Activo", "Nuevo", "Pausado", "Inactivo")

DEFAULT_STATUS = "Nuevo"

NAME_MAX_LENGTH = 100
DURATION_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500
TASK_TITLE_MAX_LENGTH = 200

# Upper bound of the clients column (32-bit signed integer).
CLIENTS_MAX = 2_147_483_647

_MISSING = object()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _required_text(label: str, max_length: int | None) -> Callable[[Any], list[str]]:
    def rule(value: Any) -> list[str]:
        if value is _MISSING or value is None:
            return [f"{label} is required"]
        if not isinstance(value, str):
            return [f"{label} must be text"]
        stripped = value.strip()
        if not stripped:
            return [f"{label} is required"]
        if max_length is not None and len(stripped) > max_length:
            return [f"{label} cannot exceed {max_length} characters"]
        return []

    return rule


def _check_category(value: Any) -> list[str]:
    if value is _MISSING or value is None or value == "":
        return ["Category is required"]
    if value not in SERVICE_CATEGORIES:
        return [f"Category must be one of: {', '.join(SERVICE_CATEGORIES)}"]
    return []


def _check_price(value: Any) -> list[str]:
    if value is _MISSING or value is None:
        return ["Price is required"]
    if not _is_number(value):
        return ["Price must be a number"]
    if not math.isfinite(value):
        return ["Price must be a finite number"]
    if value < 0:
        return ["Price cannot be negative"]
    return []


def _check_status(value: Any) -> list[str]:
    if value not in SERVICE_STATUSES:
        return [f"Status must be one of: {', '.join(SERVICE_STATUSES)}"]
    return []


def _check_clients(value: Any) -> list[str]:
    if not isinstance(value, int) or isinstance(value, bool):
        return ["Clients must be a whole number"]
    if value < 0:
        return ["Clients cannot be negative"]
    if value > CLIENTS_MAX:
        return [f"Clients cannot exceed {CLIENTS_MAX:,}"]
    return []


# Fields the store fills in when a create omits them.
_OPTIONAL_ON_CREATE = frozenset({"status", "clients"})

SERVICE_RULES: dict[str, Callable[[Any], list[str]]] = {
    "name": _required_text("Service name", NAME_MAX_LENGTH),
    "category": _check_category,
    "price": _check_price,
    "duration": _required_text("Duration", DURATION_MAX_LENGTH),
    "description": _required_text("Description", DESCRIPTION_MAX_LENGTH),
    "status": _check_status,
    "clients": _check_clients,
}


def service_violations(payload: Mapping[str, Any], partial: bool = False) -> dict[str, list[str]]:
    """Return ``{field: [messages]}`` for every field that breaks a rule."""
    violations: dict[str, list[str]] = {}
    for field, rule in SERVICE_RULES.items():
        value = payload.get(field, _MISSING)
        if value is _MISSING and (partial or field in _OPTIONAL_ON_CREATE):
            continue
        if value is None and not partial and field in _OPTIONAL_ON_CREATE:
            continue
        messages = rule(value)
        if messages:
            violations[field] = messages
    return violations


def validate_service(payload: Mapping[str, Any], partial: bool = False) -> list[str]:
    """Human-readable violations for a Service payload; empty means valid."""
    return [msg for messages in service_violations(payload, partial).values() for msg in messages]


def validate_task(payload: Mapping[str, Any], partial: bool = False) -> list[str]:
    errors: list[str] = []
    title = payload.get("title", _MISSING)
    if not (partial and title is _MISSING):
        errors.extend(_required_text("Title", TASK_TITLE_MAX_LENGTH)(title))
    if "completed" in payload and not isinstance(payload["completed"], bool):
        errors.append("Completed must be true or false")
    description = payload.get("description")
    if description is not None and not isinstance(description, str):
        errors.append("Description must be text")
    return errors


def is_valid_category(category: str) -> bool:
    return category in SERVICE_CATEGORIES
