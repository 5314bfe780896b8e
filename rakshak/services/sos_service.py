"""
SOS Service - Emergency contact notification for SOS incidents.

DESIGN PRINCIPLES (CRITICAL):
- An SOS report must NEVER fail or stall because of a messaging provider
- Every contact gets two independent attempts: SMS and WhatsApp
- One channel failing never suppresses the other
- Dispatch runs as a detached task; the request returns the incident at once
- Outcomes are visible in server logs only

WHAT THIS SERVICE DOES:
✅ Build the SOS alert text (address, description, local time, map link)
✅ Fan out SMS + WhatsApp to every contact of the partition (fire-and-forget)
✅ Bulk SMS on demand, with a per-contact result list
✅ WhatsApp click-to-chat links for clients that open chats themselves

WHAT THIS SERVICE DOES NOT:
❌ Retry failed sends
❌ Guarantee delivery
"""

from rakshak.config.firebase import require_db
from rakshak.core.exceptions import NotFoundError, NotificationError, ValidationError
from rakshak.core.settings import settings
from rakshak.services.contact_service import get_contact_service
from rakshak.services.messaging import MessagingChannel, get_messaging_channels
from rakshak.utils.firestore_helpers import snapshot_to_dict
from rakshak.utils.phone import build_whatsapp_link, format_phone_for_display, is_canonical_phone
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple
from zoneinfo import ZoneInfo
import asyncio
import logging

logger = logging.getLogger(__name__)


@dataclass
class NotificationAttempt:
    contact: str
    phone: str
    channel: str
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class SOSService:
    """
    SOS alert fan-out and bulk SMS.
    """

    INCIDENTS = "incidents"
    MAPS_URL = "https://www.google.com/maps?q={latitude},{longitude}"

    def __init__(self, contact_service=None, channels=None, db=None):
        self._contact_service = contact_service
        self._channels = channels
        self._db = db
        # Strong references so detached dispatch tasks are not garbage collected
        self._pending: Set[asyncio.Task] = set()

    @property
    def contact_service(self):
        if self._contact_service is None:
            self._contact_service = get_contact_service()
        return self._contact_service

    @property
    def channels(self):
        if self._channels is None:
            self._channels = get_messaging_channels()
        return self._channels

    @property
    def db(self):
        if self._db is None:
            self._db = require_db()
        return self._db

    # ------------------------------------------------------------------
    # Message building
    # ------------------------------------------------------------------

    def _format_time(self, value) -> str:
        if not isinstance(value, datetime):
            value = datetime.now(timezone.utc)
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(ZoneInfo(settings.TIMEZONE)).strftime("%d/%m/%Y, %I:%M:%S %p")

    def build_alert_message(self, incident: Dict, include_map_link: bool = True) -> str:
        location = incident.get("location") or {}
        latitude = location.get("latitude")
        longitude = location.get("longitude")

        lines = [
            "🚨 SOS ALERT 🚨",
            f"Emergency at: {location.get('address') or settings.DEFAULT_ADDRESS}",
            f"Description: {incident.get('description', '')}",
            f"Time: {self._format_time(incident.get('created_at'))}",
            f"Location: {latitude}, {longitude}",
        ]
        if include_map_link:
            lines.append(f"Google Maps: {self.MAPS_URL.format(latitude=latitude, longitude=longitude)}")
        lines.append("Please respond immediately!")
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def _attempt(self, channel: MessagingChannel, name: str, phone: str, message: str) -> NotificationAttempt:
        """One send on one channel. Never raises."""
        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, channel.send, phone, message)
            if not result.get("success"):
                raise NotificationError(channel.channel_name, phone, result.get("error") or "unknown error")
        except Exception as e:
            logger.error(f"❌ Failed to send {channel.channel_name} to {name}: {e}")
            return NotificationAttempt(contact=name, phone=phone, channel=channel.channel_name, success=False, error=str(e))

        logger.info(f"✅ {channel.channel_name} sent to {name} ({phone})")
        return NotificationAttempt(
            contact=name,
            phone=phone,
            channel=channel.channel_name,
            success=True,
            message_id=result.get("message_id"),
        )

    async def _fan_out(self, incident_id: str, recipients: List[Tuple[str, str]], message: str) -> List[NotificationAttempt]:
        channels = (self.channels.sms, self.channels.whatsapp)
        attempts = await asyncio.gather(*[
            self._attempt(channel, name, phone, message)
            for name, phone in recipients
            for channel in channels
        ])

        sent = sum(1 for attempt in attempts if attempt.success)
        logger.info(f"SOS dispatch for incident {incident_id} finished: {sent}/{len(attempts)} notifications sent")
        return list(attempts)

    def trigger_sos_alerts(self, incident: Dict, user_id: str) -> Optional[asyncio.Task]:
        """
        Start notifying the partition's contacts about a freshly created SOS incident.

        Must be called from a running event loop. Returns the detached dispatch
        task, or None when there is nothing to send. Never raises: the SOS
        incident is already stored and must be returned to the caller.
        """
        incident_id = incident.get("id")
        try:
            contacts = self.contact_service.list_contacts(user_id)
        except Exception as e:
            logger.error(f"⚠️ Could not load contacts for SOS incident {incident_id}: {e}", exc_info=True)
            return None

        if not contacts:
            logger.info(f"SOS incident {incident_id}: no contacts for user '{user_id}', nothing to dispatch")
            return None

        message = self.build_alert_message(incident)
        # Plain strings only; the task outlives the request
        recipients = []
        for contact in contacts:
            if not is_canonical_phone(contact.get("phone")):
                logger.warning(f"Skipping contact {contact.get('id')}: stored phone is not in +91XXXXXXXXXX form")
                continue
            recipients.append((contact.get("name", ""), contact["phone"]))

        logger.info(f"🚨 SOS incident {incident_id}: notifying {len(recipients)} contact(s) via SMS and WhatsApp")
        task = asyncio.get_running_loop().create_task(self._fan_out(incident_id, recipients, message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def drain(self) -> None:
        """Wait for dispatches still in flight (used on shutdown and in tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ------------------------------------------------------------------
    # On-demand operations
    # ------------------------------------------------------------------

    def _get_sos_incident(self, incident_id: str) -> Dict:
        incident = snapshot_to_dict(self.db.collection(self.INCIDENTS).document(incident_id).get())
        if not incident:
            raise NotFoundError("Incident not found")
        if not incident.get("is_sos"):
            raise ValidationError("Invalid SOS incident")
        return incident

    def _get_contacts(self, user_id: str) -> List[Dict]:
        contacts = self.contact_service.list_contacts(user_id)
        if not contacts:
            raise ValidationError("No favorite contacts found")
        return contacts

    async def send_sos_sms(self, incident_id: str, user_id: str) -> Dict:
        """
        Send the SOS alert by SMS to every contact, one after another.

        Returns:
            {"success", "sent", "total", "results": [{"contact", "phone", "success", "error"}]}

        Raises:
            NotFoundError: unknown incident
            ValidationError: incident is not an SOS, or the partition has no contacts
        """
        incident = self._get_sos_incident(incident_id)
        contacts = self._get_contacts(user_id)
        message = self.build_alert_message(incident, include_map_link=False)

        results = []
        for contact in contacts:
            attempt = await self._attempt(self.channels.sms, contact.get("name", ""), contact["phone"], message)
            results.append({
                "contact": attempt.contact,
                "phone": attempt.phone,
                "success": attempt.success,
                "error": attempt.error,
            })

        sent = sum(1 for r in results if r["success"])
        logger.info(f"SOS SMS for incident {incident_id}: {sent}/{len(results)} sent")
        return {"success": True, "sent": sent, "total": len(results), "results": results}

    def build_sos_links(self, incident_id: str, user_id: str, mobile: bool = True) -> List[Dict]:
        """
        WhatsApp click-to-chat links pre-filled with the SOS alert, one per contact.
        """
        incident = self._get_sos_incident(incident_id)
        contacts = self._get_contacts(user_id)
        message = self.build_alert_message(incident)

        links = []
        for contact in contacts:
            url = build_whatsapp_link(contact["phone"], message, mobile=mobile)
            if not url:
                logger.warning(f"Skipping contact {contact.get('id')}: stored phone is not a valid Indian mobile number")
                continue
            links.append({
                "contact": contact.get("name", ""),
                "phone": contact["phone"],
                "display_phone": format_phone_for_display(contact["phone"]),
                "url": url,
            })
        return links


# Global service instance (singleton pattern)
_sos_service = None


def get_sos_service() -> SOSService:
    global _sos_service
    if _sos_service is None:
        _sos_service = SOSService()
    return _sos_service
