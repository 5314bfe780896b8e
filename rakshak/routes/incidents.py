"""
Incident endpoints - report submission, browsing, moderation and SOS.

Reports are submitted as multipart forms (optional photo under "image").
Form and JSON field names follow the web client (camelCase).
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from rakshak.core.settings import settings
from rakshak.models.contact import SOSLink, SOSSmsRequest, SOSSmsResponse
from rakshak.models.incident import IncidentCreate, IncidentResponse, IncidentStatusUpdate
from rakshak.services.incident_service import IncidentService, get_incident_service
from rakshak.services.sos_service import SOSService, get_sos_service
from rakshak.services.storage import ImageUpload
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/incidents", tags=["Incidents"])


def incident_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    is_anonymous: bool = Form(False, alias="isAnonymous"),
    reporter_name: Optional[str] = Form(None, alias="reporterName"),
    reporter_contact: Optional[str] = Form(None, alias="reporterContact"),
    priority: Optional[str] = Form(None),
) -> IncidentCreate:
    return IncidentCreate(
        title=title,
        description=description,
        category=category,
        latitude=latitude,
        longitude=longitude,
        address=address,
        is_anonymous=is_anonymous,
        reporter_name=reporter_name,
        reporter_contact=reporter_contact,
        priority=priority,
    )


async def read_image(image: Optional[UploadFile]) -> Optional[ImageUpload]:
    # Browsers send an empty file part when no photo was picked
    if image is None or not image.filename:
        return None
    return ImageUpload(
        filename=image.filename,
        content_type=image.content_type or "",
        data=await image.read(),
    )


@router.get("", response_model=List[IncidentResponse])
async def list_incidents(
    category: Optional[str] = Query(None, description="Filter by category"),
    status_filter: Optional[str] = Query(None, alias="status", description="Filter by status"),
    priority: Optional[str] = Query(None, description="Filter by priority"),
    latitude: Optional[float] = Query(None, description="Center latitude for radius search"),
    longitude: Optional[float] = Query(None, description="Center longitude for radius search"),
    radius: Optional[float] = Query(None, ge=0, description="Radius in km"),
    service: IncidentService = Depends(get_incident_service),
):
    """
    List incidents, newest first.

    With latitude, longitude and radius all set, only incidents inside the
    radius are returned, nearest first, each with a "distance" in km.
    """
    return await service.list_incidents(
        category=category,
        status=status_filter,
        priority=priority,
        latitude=latitude,
        longitude=longitude,
        radius=radius,
    )


@router.post("", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_incident(
    data: IncidentCreate = Depends(incident_form),
    image: Optional[UploadFile] = File(None),
    service: IncidentService = Depends(get_incident_service),
):
    """
    Submit a new incident report. New reports always start as "pending".
    """
    logger.info(f"📝 POST /incidents - category={data.category}, has_image={bool(image and image.filename)}")
    return await service.create_incident(data, await read_image(image))


@router.post("/sos", response_model=IncidentResponse, status_code=status.HTTP_201_CREATED)
async def create_sos_incident(
    data: IncidentCreate = Depends(incident_form),
    image: Optional[UploadFile] = File(None),
    user_id: Optional[str] = Form(None, alias="userId"),
    service: IncidentService = Depends(get_incident_service),
):
    """
    Raise an SOS alert.

    The incident is stored as critical/active and returned at once; SMS and
    WhatsApp notifications to the user's emergency contacts go out in the
    background.
    """
    partition = user_id or settings.DEFAULT_USER_ID
    logger.warning(f"🚨 POST /incidents/sos - user={partition}")
    return await service.create_sos_incident(data, partition, await read_image(image))


@router.post("/sos/send-sms", response_model=SOSSmsResponse)
async def send_sos_sms(
    request: SOSSmsRequest,
    sos_service: SOSService = Depends(get_sos_service),
):
    """
    Send the SOS alert by SMS to every emergency contact and report per-contact results.
    """
    return await sos_service.send_sos_sms(request.incident_id, request.user_id or settings.DEFAULT_USER_ID)


@router.get("/{incident_id}", response_model=IncidentResponse)
async def get_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    return await service.get_incident(incident_id)


@router.get("/{incident_id}/sos-links", response_model=List[SOSLink])
async def get_sos_links(
    incident_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    mobile: bool = Query(True, description="wa.me links for phones, WhatsApp Web otherwise"),
    sos_service: SOSService = Depends(get_sos_service),
):
    """
    WhatsApp click-to-chat links, pre-filled with the SOS alert, one per contact.
    """
    return sos_service.build_sos_links(incident_id, user_id or settings.DEFAULT_USER_ID, mobile=mobile)


@router.patch("/{incident_id}", response_model=IncidentResponse)
async def update_incident(
    incident_id: str,
    update: IncidentStatusUpdate,
    service: IncidentService = Depends(get_incident_service),
):
    """
    Moderator update of status and/or notes. Omitted fields are left unchanged.
    """
    return await service.update_incident_status(incident_id, status=update.status, notes=update.notes)


@router.delete("/{incident_id}")
async def delete_incident(incident_id: str, service: IncidentService = Depends(get_incident_service)):
    await service.delete_incident(incident_id)
    return {"message": "Incident deleted successfully"}
