"""HTTP routes for the warcodex API."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from warcodex import __version__
from warcodex.admin.registry import UnknownCollectionError
from warcodex.admin.views import SortSelection, UnsortableFieldError
from warcodex.api.auth import AdminUser, AuthenticatedUser, CurrentUser, UserInfo
from warcodex.api.runtime import ApiState, read_version_file
from warcodex.domain.enums import SortDirection
from warcodex.domain.references import PolicyError
from warcodex.repository.errors import StoreError

logger = logging.getLogger(__name__)

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class ListResponse(BaseModel):
    collection: str
    kind: str
    title: str
    item_title: str
    items: list[dict[str, Any]]
    total: int
    selected: str | None = None


class ReferenceMapRequest(BaseModel):
    references: dict[str, str] = Field(default_factory=dict)


class ReferenceHierarchyRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    reference_hierarchy: dict[str, list[str]] | None = Field(
        default=None, alias="referenceHierarchy"
    )


def _not_found(collection: str, entity_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{collection}/{entity_id} not found",
    )


def _unknown_collection(exc: UnknownCollectionError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


def _store_failure(exc: StoreError) -> HTTPException:
    logger.exception("document store failure")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def _invalid(exc: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=422,
        detail=exc.errors(include_url=False, include_context=False),
    )


def _parse_sort(values: list[str]) -> SortSelection | None:
    # Only the first "field:direction" pair is honoured.
    for value in values:
        field, _, direction = value.partition(":")
        if not field:
            continue
        try:
            return SortSelection(field, SortDirection(direction or SortDirection.ASC))
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"invalid sort direction '{direction}'",
            ) from exc
    return None


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "version": state.settings.app_version or __version__,
        "store": state.store.name,
    }


@router.get("/hello")
async def hello() -> dict[str, str]:
    return {"message": "Hello, world!"}


@router.get("/version")
async def version(state: ApiStateDep) -> Any:
    try:
        return {"version": read_version_file(state.settings.version_file)["version"]}
    except (OSError, ValueError, KeyError):
        logger.exception("cannot read %s", state.settings.version_file)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Cannot read version.json"},
        )


@router.get("/test-connection")
async def test_connection(state: ApiStateDep, user: CurrentUser) -> Any:
    if not user.is_authenticated:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"}
        )
    try:
        document = await state.entities.get_by_id(
            state.settings.diagnostic_collection, state.settings.diagnostic_document_id
        )
    except Exception:
        logger.exception("store connection test failed")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )
    return document


@router.get("/me", response_model=UserInfo)
async def me(user: CurrentUser) -> UserInfo:
    return user


@router.get("/systems/{key}")
async def get_system(key: str, state: ApiStateDep) -> dict[str, Any]:
    try:
        system = await state.systems.get_by_key(key)
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if system is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="system not found")
    return system


@router.put("/systems/{key}/reference-hierarchy")
async def put_reference_hierarchy(
    key: str, request: ReferenceHierarchyRequest, state: ApiStateDep, user: AdminUser
) -> dict[str, Any]:
    try:
        system = await state.systems.set_reference_hierarchy(
            key, request.reference_hierarchy, user=user.email
        )
    except PolicyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if system is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="system not found")
    return system


@router.get("/collections/{collection}", response_model=ListResponse)
async def list_collection(
    collection: str,
    state: ApiStateDep,
    system_id: str | None = None,
    filter_text: Annotated[str | None, Query(alias="filter")] = None,
    sort: Annotated[list[str], Query()] = [],  # noqa: B006
    limit: Annotated[int | None, Query(ge=1)] = None,
    selected: str | None = None,
) -> ListResponse:
    try:
        view = await state.content.list_view(
            collection,
            system_id=system_id,
            filter_text=filter_text,
            sort=_parse_sort(sort),
            limit=limit,
            selected=selected,
        )
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except UnsortableFieldError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return ListResponse.model_validate(view)


@router.get("/collections/{collection}/{entity_id}")
async def get_entity(collection: str, entity_id: str, state: ApiStateDep) -> dict[str, Any]:
    try:
        document = await state.content.get(collection, entity_id)
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if document is None:
        raise _not_found(collection, entity_id)
    return document


@router.post("/collections/{collection}", status_code=status.HTTP_201_CREATED)
async def create_entity(
    collection: str,
    payload: dict[str, Any],
    state: ApiStateDep,
    user: AuthenticatedUser,
) -> dict[str, Any]:
    try:
        document = await state.content.create(collection, payload, user=user.email or "")
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if document is None:  # pragma: no cover - deleted between write and read
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="document vanished")
    return document


@router.put("/collections/{collection}/{entity_id}")
async def update_entity(
    collection: str,
    entity_id: str,
    payload: dict[str, Any],
    state: ApiStateDep,
    user: AuthenticatedUser,
) -> dict[str, Any]:
    try:
        document = await state.content.update(
            collection, entity_id, payload, user=user.email or ""
        )
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if document is None:
        raise _not_found(collection, entity_id)
    return document


@router.delete("/collections/{collection}/{entity_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entity(
    collection: str, entity_id: str, state: ApiStateDep, user: AuthenticatedUser  # noqa: ARG001
) -> Response:
    try:
        await state.content.delete(collection, entity_id)
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


async def _load_or_404(state: ApiState, collection: str, entity_id: str) -> dict[str, Any]:
    document = await state.content.get(collection, entity_id)
    if document is None:
        raise _not_found(collection, entity_id)
    return document


@router.get("/collections/{collection}/{entity_id}/references")
async def get_references(
    collection: str,
    entity_id: str,
    state: ApiStateDep,
    system: str | None = None,
) -> dict[str, Any]:
    try:
        document = await _load_or_404(state, collection, entity_id)
        return await state.content.reference_report(collection, document, system_key=system)
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except PolicyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc


@router.put("/collections/{collection}/{entity_id}/references")
async def put_references(
    collection: str,
    entity_id: str,
    request: ReferenceMapRequest,
    state: ApiStateDep,
    user: AuthenticatedUser,
    system: str | None = None,
) -> dict[str, Any]:
    try:
        document = await _load_or_404(state, collection, entity_id)
        editor = await state.content.editor_for(
            collection, document, system_key=system, user=user.email
        )
        for target_id in list(editor.references):
            editor.remove(target_id)
        for target_id, target_collection in request.references.items():
            editor.add(target_id, target_collection)
        saved = await editor.commit()
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except PolicyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
    if saved is None:  # pragma: no cover - deleted between write and read
        raise _not_found(collection, entity_id)
    return saved


@router.get("/collections/{collection}/{entity_id}/reference-candidates")
async def reference_candidates(
    collection: str,
    entity_id: str,
    target: str,
    state: ApiStateDep,
    system: str | None = None,
) -> list[dict[str, Any]]:
    try:
        document = await _load_or_404(state, collection, entity_id)
        editor = await state.content.editor_for(collection, document, system_key=system)
        return await editor.candidates(target)
    except UnknownCollectionError as exc:
        raise _unknown_collection(exc) from exc
    except PolicyError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreError as exc:
        raise _store_failure(exc) from exc
