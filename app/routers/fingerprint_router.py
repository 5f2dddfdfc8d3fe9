import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import DuplicateTemplate, NotFound, StoreError, ValidationError
from app.repos.fingerprint_repo import FingerPrintRepository
from app.schemas.finger_print import (
    AttendanceListResponse,
    AttendanceRead,
    CreationResponse,
    DecodeResponse,
    FingerPrintCreate,
    FingerPrintListResponse,
    FingerPrintMatchRequest,
    FingerPrintRead,
    MatchResponse,
)
from app.services.fingerprint_service import FingerPrintService
from template_matcher import format_similarity

logger = logging.getLogger(__name__)

router = APIRouter(responses= {404 : {"description":"Not found"}})


def get_service(request: Request, db: AsyncSession = Depends(get_db)) -> FingerPrintService:
    return FingerPrintService(
        FingerPrintRepository(db),
        request.app.state.settings,
        executor=request.app.state.thread_pool,
    )


def to_http_error(error: Exception) -> HTTPException:
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, DuplicateTemplate):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(error))
    if isinstance(error, NotFound):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))
    logger.error(f"Server error: {error}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Server Error")


@router.post("", status_code= status.HTTP_201_CREATED)
async def save_fingerprint(body: FingerPrintCreate, service: FingerPrintService = Depends(get_service)) -> CreationResponse:
    try:
        outcome = await service.register(body.template, body.fingerprint_id)
    except (ValidationError, DuplicateTemplate, StoreError) as e:
        raise to_http_error(e) from e

    return CreationResponse(
        message= "Fingerprint saved successfully" if outcome.created else "Fingerprint updated successfully",
        data= FingerPrintRead.model_validate(outcome.record)
    )


@router.post("/match", status_code= status.HTTP_200_OK)
async def match_fingerprint(body: FingerPrintMatchRequest, service: FingerPrintService = Depends(get_service)):
    try:
        outcome = await service.match(body.template)
    except (ValidationError, StoreError) as e:
        raise to_http_error(e) from e

    if outcome.matched:
        response = MatchResponse(
            message= "Fingerprint matched",
            status= outcome.status,
            similarity= format_similarity(outcome.similarity),
            confidence= outcome.confidence,
            attendance_logged= outcome.attendance_logged,
            data= FingerPrintRead.model_validate(outcome.record)
        )
        return response

    response = MatchResponse(
        message= "No matching fingerprint found",
        status= outcome.status,
        similarity= format_similarity(outcome.similarity),
        closest_fingerprint_id= outcome.record.id if outcome.record is not None else None
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=response.model_dump(mode="json"))


@router.get("", status_code= status.HTTP_200_OK)
async def list_fingerprints(service: FingerPrintService = Depends(get_service)) -> FingerPrintListResponse:
    try:
        fingerprints = await service.list_all()
    except StoreError as e:
        raise to_http_error(e) from e

    return FingerPrintListResponse(
        message= "All fingerprints retrieved successfully",
        count= len(fingerprints),
        data= [FingerPrintRead.model_validate(fp) for fp in fingerprints]
    )


@router.get("/{fingerprint_id}/decode", status_code= status.HTTP_200_OK)
async def decode_fingerprint(fingerprint_id: int, service: FingerPrintService = Depends(get_service)) -> DecodeResponse:
    try:
        hex_template = await service.decode(fingerprint_id)
    except (NotFound, StoreError) as e:
        raise to_http_error(e) from e

    return DecodeResponse(id= fingerprint_id, hex= hex_template)


@router.get("/{fingerprint_id}/attendance", status_code= status.HTTP_200_OK)
async def list_attendance(fingerprint_id: int, service: FingerPrintService = Depends(get_service)) -> AttendanceListResponse:
    try:
        events = await service.list_attendance(fingerprint_id)
    except (NotFound, StoreError) as e:
        raise to_http_error(e) from e

    return AttendanceListResponse(
        fingerprint_id= fingerprint_id,
        count= len(events),
        data= [AttendanceRead.model_validate(event) for event in events]
    )
