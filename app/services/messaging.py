"""Outbound messaging: Twilio for SMS / WhatsApp, AWS SES for email.

With ``NOTIFICATIONS_SIMULATE`` on, or when a provider has no credentials,
messages are only logged and reported as delivered.
"""
import asyncio
import base64
import json
import logging
import re
import time
import urllib.error
import urllib.parse
import urllib.request

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.config import settings

logger = logging.getLogger(__name__)

TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"

_NON_DIGIT_RE = re.compile(r"\D")


class ChannelError(Exception):
    """A provider refused or failed to deliver a message."""


def normalize_phone(phone: str | None, country_code: str | None = None) -> str:
    """International format: digits only, country code prefixed once, leading ``+``."""
    if not phone:
        return ""
    code = country_code or settings.country_calling_code
    digits = _NON_DIGIT_RE.sub("", phone)
    if not digits:
        return ""
    if digits.startswith(code):
        return f"+{digits}"
    return f"+{code}{digits}"


_ses = None


def get_ses():
    global _ses
    if _ses is None:
        _ses = boto3.client(
            "ses",
            region_name=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id or None,
            aws_secret_access_key=settings.aws_secret_access_key or None,
        )
    return _ses


def _simulated(channel: str, to: str) -> dict:
    return {"success": True, "id": f"{channel}-{int(time.time() * 1000)}", "to": to, "simulated": True}


def _twilio_send_sync(to: str, from_: str, body: str) -> dict:
    url = TWILIO_MESSAGES_URL.format(sid=settings.twilio_account_sid)
    data = urllib.parse.urlencode({"To": to, "From": from_, "Body": body}).encode("utf-8")
    token = base64.b64encode(
        f"{settings.twilio_account_sid}:{settings.twilio_auth_token}".encode("utf-8")
    ).decode("ascii")
    req = urllib.request.Request(url, data=data, method="POST")
    req.add_header("Authorization", f"Basic {token}")
    req.add_header("Content-Type", "application/x-www-form-urlencoded")
    try:
        with urllib.request.urlopen(req, timeout=10) as resp:
            payload = json.loads(resp.read().decode("utf-8") or "{}")
    except urllib.error.HTTPError as e:
        raise ChannelError(f"Twilio rejected message ({e.code})") from e
    except (urllib.error.URLError, TimeoutError) as e:
        raise ChannelError(f"Twilio unreachable: {e}") from e
    return {"success": True, "id": payload.get("sid"), "to": to}


def _twilio_configured(from_: str) -> bool:
    return bool(settings.twilio_account_sid and settings.twilio_auth_token and from_)


def _ses_send_sync(to: str, subject: str, body: str) -> dict:
    try:
        resp = get_ses().send_email(
            Source=settings.ses_sender_email,
            Destination={"ToAddresses": [to]},
            Message={
                "Subject": {"Data": subject, "Charset": "UTF-8"},
                "Body": {"Text": {"Data": body, "Charset": "UTF-8"}},
            },
        )
    except (ClientError, BotoCoreError) as e:
        raise ChannelError(f"SES send failed: {e}") from e
    return {"success": True, "id": resp.get("MessageId"), "to": to}


class MessagingClient:
    """Async facade over the providers; blocking SDK calls run in a worker thread."""

    async def send_sms(self, to: str, body: str) -> dict:
        logger.info(f"Sending SMS notification to {to}")
        if settings.notifications_simulate or not _twilio_configured(settings.twilio_sms_from):
            logger.info(f"SIMULATED SMS TO: {to} MESSAGE: {body}")
            return _simulated("sms", to)
        return await asyncio.to_thread(_twilio_send_sync, to, settings.twilio_sms_from, body)

    async def send_whatsapp(self, to: str, body: str) -> dict:
        logger.info(f"Sending WhatsApp notification to {to}")
        if settings.notifications_simulate or not _twilio_configured(settings.twilio_whatsapp_from):
            logger.info(f"SIMULATED WHATSAPP TO: {to} MESSAGE: {body}")
            return _simulated("whatsapp", to)
        return await asyncio.to_thread(
            _twilio_send_sync, f"whatsapp:{to}", f"whatsapp:{settings.twilio_whatsapp_from}", body
        )

    async def send_email(self, to: str, subject: str, body: str) -> dict:
        logger.info(f"Sending email notification to {to}")
        if settings.notifications_simulate or not settings.ses_sender_email:
            logger.info(f"SIMULATED EMAIL TO: {to} SUBJECT: {subject} MESSAGE: {body}")
            return _simulated("email", to)
        return await asyncio.to_thread(_ses_send_sync, to, subject, body)


_client = None


def get_messaging_client() -> MessagingClient:
    global _client
    if _client is None:
        _client = MessagingClient()
    return _client
