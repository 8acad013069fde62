from pydantic import BaseModel, Field, field_validator

from virtyum.validation import (
    CLIENTS_MAX,
    DEFAULT_STATUS,
    DESCRIPTION_MAX_LENGTH,
    DURATION_MAX_LENGTH,
    NAME_MAX_LENGTH,
    SERVICE_CATEGORIES,
    SERVICE_STATUSES,
    TASK_TITLE_MAX_LENGTH,
)


# --- Service: request bodies ---
#
# Request bodies are deliberately loose: every field is optional so the
# field rules in ``virtyum.validation`` can report all problems together
# instead of stopping at the first missing key.

class ServiceCreate(BaseModel):
    name: str | None = None
    category: str | None = None
    price: float | None = None
    duration: str | None = None
    status: str | None = None
    description: str | None = None
    clients: int | None = None


class ServiceUpdate(ServiceCreate):
    """Partial update; only keys present in the request body are applied."""


# --- Service: stored shape ---

class ServiceDocument(BaseModel):
    """
    Schema the repository enforces right before persisting a record,
    independently of the request-level rules.

    Trims ``name``/``description`` and upper-cases the first letter of
    ``name`` on every write.
    """

    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    category: str
    price: float = Field(ge=0, allow_inf_nan=False)
    duration: str = Field(min_length=1, max_length=DURATION_MAX_LENGTH)
    status: str = DEFAULT_STATUS
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    clients: int = Field(0, ge=0, le=CLIENTS_MAX)

    @field_validator("name", "description", mode="before")
    @classmethod
    def _trim(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("name")
    @classmethod
    def _capitalize(cls, value: str) -> str:
        return value[:1].upper() + value[1:]

    @field_validator("category")
    @classmethod
    def _known_category(cls, value: str) -> str:
        if value not in SERVICE_CATEGORIES:
            raise ValueError(f"must be one of: {', '.join(SERVICE_CATEGORIES)}")
        return value

    @field_validator("status")
    @classmethod
    def _known_status(cls, value: str) -> str:
        if value not in SERVICE_STATUSES:
            raise ValueError(f"must be one of: {', '.join(SERVICE_STATUSES)}")
        return value


# --- Task ---

class TaskCreate(BaseModel):
    title: str | None = None
    description: str | None = None
    completed: bool | None = None


class TaskUpdate(TaskCreate):
    """Partial update; only keys present in the request body are applied."""


class TaskDocument(BaseModel):
    title: str = Field(min_length=1, max_length=TASK_TITLE_MAX_LENGTH)
    description: str | None = None
    completed: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def _trim(cls, value):
        return value.strip() if isinstance(value, str) else value


# --- Stats snapshot ---

class StatsOverview(BaseModel):
    totalServices: int
    activeServices: int
    newServices: int
    pausedServices: int
    inactiveServices: int


class StatsClients(BaseModel):
    totalClients: int


class StatsCategories(BaseModel):
    totalCategories: int
    availableCategories: list[str]


class StatsPricing(BaseModel):
    averagePrice: int
    minPrice: int | float
    maxPrice: int | float


class StatsSnapshot(BaseModel):
    overview: StatsOverview
    clients: StatsClients
    categories: StatsCategories
    pricing: StatsPricing
    lastUpdated: str

