"""
Service catalog router.

GET and POST /api/services relay to the SMM panel. On success the panel's
status code and body are passed through unchanged.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from smm_relay.dependencies import get_catalog_relay, get_json_object
from smm_relay.services.catalog_relay import CatalogRelay


router = APIRouter(
    prefix="/services",
    tags=["Services"],
    responses={
        502: {"description": "Medanpedia API call failed"},
    }
)


@router.get(
    "",
    summary="List Services",
    description="Fetch the panel service catalog using the server credentials.",
)
async def list_services(
    relay: CatalogRelay = Depends(get_catalog_relay),
) -> JSONResponse:
    status_code, body = await relay.fetch_catalog()
    return JSONResponse(status_code=status_code, content=body)


@router.post(
    "",
    summary="Forward Catalog Action",
    description="""
    Forward an arbitrary JSON object to the panel.

    The server credentials are added to the body and always replace any
    api_id or api_key supplied by the caller.
    """,
    responses={
        400: {"description": "Body is not a JSON object"},
    }
)
async def forward_catalog_action(
    body: Dict[str, Any] = Depends(get_json_object),
    relay: CatalogRelay = Depends(get_catalog_relay),
) -> JSONResponse:
    status_code, upstream_body = await relay.submit_catalog_action(body)
    return JSONResponse(status_code=status_code, content=upstream_body)
