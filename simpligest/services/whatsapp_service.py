import base64
import json
import re
from urllib import error, parse, request
from urllib.parse import urlparse

from simpligest.config import get_settings


_NON_DIGIT_RE = re.compile(r"\D+")
_ALLOWED_HTTP_SCHEMES = {"http", "https"}
_WHATSAPP_PREFIX = "whatsapp:"


def _normalize_graph_phone(phone):
    return _NON_DIGIT_RE.sub("", phone)


def _with_whatsapp_prefix(phone):
    phone = phone.strip()
    if phone.lower().startswith(_WHATSAPP_PREFIX):
        return phone
    return _WHATSAPP_PREFIX + phone


def build_payload(api_url, message, phone):
    if "graph.facebook.com" in api_url.lower():
        normalized_phone = _normalize_graph_phone(phone)
        if not normalized_phone:
            raise ValueError("phone is required")
        return {
            "messaging_product": "whatsapp",
            "to": normalized_phone,
            "type": "text",
            "text": {"body": message},
        }
    return {"to": phone, "message": message}


def build_twilio_form(message, phone, from_number):
    return {
        "From": _with_whatsapp_prefix(from_number),
        "To": _with_whatsapp_prefix(phone),
        "Body": message,
    }


def validate_api_url(api_url):
    parsed = urlparse(api_url)
    scheme = parsed.scheme.lower()
    if scheme not in _ALLOWED_HTTP_SCHEMES or not parsed.netloc:
        raise RuntimeError("WHATSAPP_API_URL must be an absolute HTTP(S) URL")
    return api_url


def _raise_http_error(exc, provider):
    body = ""
    try:
        body_bytes = exc.read()
        if body_bytes:
            body = body_bytes.decode("utf-8", errors="replace").strip()
    except (OSError, ValueError):
        body = ""

    if body:
        raise RuntimeError(
            "{} API error: HTTP {} {}".format(provider, exc.code, body)
        ) from exc
    raise RuntimeError("{} API error: HTTP {}".format(provider, exc.code)) from exc


def _post(req, provider, timeout):
    try:
        with request.urlopen(req, timeout=timeout) as response:  # nosec B310
            status_code = response.getcode()
            if status_code < 200 or status_code >= 300:
                raise RuntimeError("{} API error: HTTP {}".format(provider, status_code))
    except error.HTTPError as exc:
        _raise_http_error(exc, provider)
    except error.URLError as exc:
        raise RuntimeError("{} API error: {}".format(provider, exc.reason)) from exc


def twilio_configured(settings=None, from_number=None):
    settings = settings or get_settings()
    return bool(
        settings.TWILIO_ACCOUNT_SID
        and settings.TWILIO_AUTH_TOKEN
        and (from_number or settings.TWILIO_WHATSAPP_FROM)
    )


def _send_twilio(message, phone, settings, from_number):
    account_sid = settings.TWILIO_ACCOUNT_SID.strip()
    auth_token = settings.TWILIO_AUTH_TOKEN.strip()
    url = "{}/Accounts/{}/Messages.json".format(
        settings.TWILIO_API_BASE.rstrip("/"), parse.quote(account_sid)
    )
    form = build_twilio_form(message, phone, from_number or settings.TWILIO_WHATSAPP_FROM)
    credentials = base64.b64encode(
        "{}:{}".format(account_sid, auth_token).encode("utf-8")
    ).decode("ascii")

    req = request.Request(
        url,
        data=parse.urlencode(form).encode("utf-8"),
        method="POST",
        headers={
            "Content-Type": "application/x-www-form-urlencoded",
            "Authorization": "Basic {}".format(credentials),
        },
    )
    _post(req, "Twilio", settings.WHATSAPP_TIMEOUT_SECONDS)


def _send_http_api(message, phone, settings):
    api_url = (settings.WHATSAPP_API_URL or "").strip()
    access_token = (settings.WHATSAPP_ACCESS_TOKEN or "").strip()

    if not api_url:
        raise RuntimeError("WhatsApp is not configured: set Twilio credentials or WHATSAPP_API_URL")
    if not access_token:
        raise RuntimeError("WHATSAPP_ACCESS_TOKEN is not configured")
    api_url = validate_api_url(api_url)

    payload = json.dumps(build_payload(api_url, message, phone)).encode("utf-8")

    if access_token.lower().startswith("bearer "):
        auth_header = access_token
    else:
        auth_header = "Bearer {}".format(access_token)

    req = request.Request(
        api_url,
        data=payload,
        method="POST",
        headers={
            "Content-Type": "application/json",
            "Authorization": auth_header,
        },
    )
    _post(req, "WhatsApp", settings.WHATSAPP_TIMEOUT_SECONDS)


def send_whatsapp(message, phone, settings=None, from_number=None):
    """Send a text message through Twilio when configured, else the HTTP API."""
    settings = settings or get_settings()

    if message is None:
        raise ValueError("message is required")
    if phone is None:
        raise ValueError("phone is required")

    message = str(message).strip()
    phone = str(phone).strip()
    if not message:
        raise ValueError("message is required")
    if not phone:
        raise ValueError("phone is required")

    from_number = (from_number or "").strip() or None
    if twilio_configured(settings, from_number):
        _send_twilio(message, phone, settings, from_number)
        return "twilio"
    _send_http_api(message, phone, settings)
    return "http"


__all__ = [
    "build_payload",
    "build_twilio_form",
    "send_whatsapp",
    "twilio_configured",
    "validate_api_url",
]
