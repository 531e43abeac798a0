"""
Discory Backend — Scan Routes
==============================

What:  /api/scan/barcode and /api/scan/search: release lookup used to
       prefill the "add item" form. See ScanService for the provider order.
"""

import uuid

from fastapi import APIRouter, Depends

from discory.dependencies import get_current_account_id
from discory.schemas.common import ErrorResponse
from discory.schemas.scan import BarcodeScanRequest, ReleaseLookup, TitleSearchRequest
from discory.services.scan_service import scan_service

router = APIRouter(prefix="/api/scan", tags=["Release lookup"])

_LOOKUP_ERRORS = {
    400: {"description": "Missing input", "model": ErrorResponse},
    404: {"description": "No provider found a match", "model": ErrorResponse},
    500: {"description": "Every provider failed", "model": ErrorResponse},
}


@router.post("/barcode", response_model=ReleaseLookup, responses=_LOOKUP_ERRORS)
async def scan_barcode(
    body: BarcodeScanRequest,
    _: uuid.UUID = Depends(get_current_account_id),
) -> ReleaseLookup:
    return await scan_service.scan_barcode(body.barcode)


@router.post("/search", response_model=ReleaseLookup, responses=_LOOKUP_ERRORS)
async def scan_search(
    body: TitleSearchRequest,
    _: uuid.UUID = Depends(get_current_account_id),
) -> ReleaseLookup:
    return await scan_service.scan_search(body.title, body.artist)
