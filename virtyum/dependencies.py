from fastapi import Query


class ServiceFilters:
    """
    Reusable FastAPI dependency that parses the optional filters accepted
    by the service list endpoint.

    Usage in a router::

        @router.get("")
        async def list_services(filters: ServiceFilters = Depends()):
            ...

    Attributes
    ----------
    search:
        Case-insensitive substring matched against name and description.
        Blank values are treated as absent.
    status:
        Exact status to keep (``Activo``, ``Nuevo``, ``Pausado``,
        ``Inactivo``).  An unknown status simply matches nothing.
    """

    def __init__(
        self,
        search: str | None = Query(
            None,
            max_length=100,
            description="Text to look for in service name or description.",
        ),
        status: str | None = Query(
            None,
            description="Only return services in this status.",
        ),
    ) -> None:
        self.search = search.strip() if search and search.strip() else None
        self.status = status or None
