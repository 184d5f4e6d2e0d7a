import json
import logging
from datetime import date
from urllib import error, parse, request
from urllib.parse import urlparse

from simpligest.config import get_settings

logger = logging.getLogger(__name__)

_ALLOWED_HTTP_SCHEMES = {"http", "https"}


def build_sii_config(business=None, settings=None):
    """Resolve SII credentials: business settings first, then environment."""
    settings = settings or get_settings()
    api_url = (getattr(business, "sii_api_url", None) or settings.SII_API_URL or "").strip()
    api_key = (getattr(business, "sii_api_key", None) or settings.SII_API_KEY or "").strip()
    if not api_url or not api_key:
        return None

    parsed = urlparse(api_url)
    if parsed.scheme.lower() not in _ALLOWED_HTTP_SCHEMES or not parsed.netloc:
        raise RuntimeError("SII API URL must be an absolute HTTP(S) URL")

    return {
        "api_url": api_url.rstrip("/"),
        "api_key": api_key,
        "environment": getattr(business, "sii_environment", None) or "certificacion",
        "resolution_number": getattr(business, "sii_resolution_number", None),
        "office": getattr(business, "sii_office", None),
        "timeout": settings.SII_TIMEOUT_SECONDS,
    }


def build_headers(config, *, include_optional=True):
    headers = {
        "x-api-key": config["api_key"],
        "x-sii-env": config["environment"],
    }
    if include_optional:
        if config.get("resolution_number"):
            headers["x-sii-resolucion"] = config["resolution_number"]
        if config.get("office"):
            headers["x-sii-office"] = config["office"]
    return headers


def build_document_payload(document: dict, today=None) -> dict:
    items = document.get("items") or []
    if not items:
        raise ValueError("At least one item is required")

    payload_items = []
    computed_total = 0.0
    for item in items:
        if item["quantity"] <= 0 or item["unit_price"] <= 0:
            raise ValueError("Item quantity and unit price must be greater than zero")
        computed_total += item["quantity"] * item["unit_price"]
        payload_item = {
            "description": item["description"],
            "quantity": item["quantity"],
            "unitPrice": item["unit_price"],
        }
        if item.get("product_id") is not None:
            payload_item["productId"] = str(item["product_id"])
        payload_items.append(payload_item)

    issue_date = document.get("issue_date") or today or date.today()
    total = document.get("total")
    payload = {
        "type": document["type"],
        "customerName": document["customer_name"],
        "customerTaxId": document["customer_tax_id"],
        "items": payload_items,
        "issueDate": issue_date.isoformat(),
        "total": computed_total if total is None else total,
    }
    if document.get("folio"):
        payload["folio"] = document["folio"]
    if document.get("customer_email"):
        payload["customerEmail"] = document["customer_email"]
    return payload


def _request_json(req, timeout):
    try:
        with request.urlopen(req, timeout=timeout) as response:  # nosec B310
            status_code = response.getcode()
            body = response.read().decode("utf-8", errors="replace")
            if status_code < 200 or status_code >= 300:
                raise RuntimeError("SII API error: HTTP {}".format(status_code))
    except error.HTTPError as exc:
        detail = ""
        try:
            detail = exc.read().decode("utf-8", errors="replace").strip()
        except (OSError, ValueError):
            detail = ""
        raise RuntimeError("SII API error: HTTP {} {}".format(exc.code, detail).strip()) from exc
    except error.URLError as exc:
        raise RuntimeError("SII API error: {}".format(exc.reason)) from exc

    try:
        return json.loads(body) if body else {}
    except ValueError as exc:
        raise RuntimeError("SII API returned an invalid JSON body") from exc


def _normalize_response(body: dict) -> dict:
    return {
        "track_id": str(body.get("trackId") or body.get("track_id") or ""),
        "status": body.get("status") or "",
        "pdf_url": body.get("pdfUrl") or body.get("pdf_url"),
        "sii_folio": body.get("siiFolio") or body.get("sii_folio"),
        "received_at": body.get("receivedAt") or body.get("received_at"),
        "accepted": body.get("accepted"),
    }


def send_electronic_document(document: dict, business=None, settings=None) -> dict:
    config = build_sii_config(business, settings)
    if config is None:
        raise RuntimeError("SII credentials are missing; cannot issue electronic documents")

    payload = build_document_payload(document)
    headers = build_headers(config)
    headers["Content-Type"] = "application/json"
    req = request.Request(
        "{}/documents".format(config["api_url"]),
        data=json.dumps(payload).encode("utf-8"),
        method="POST",
        headers=headers,
    )
    result = _normalize_response(_request_json(req, config["timeout"]))
    logger.info("Sent %s document to SII, track id %s", payload["type"], result["track_id"])
    return result


def check_electronic_document_status(track_id, business=None, settings=None) -> dict:
    config = build_sii_config(business, settings)
    if config is None:
        raise RuntimeError("SII credentials are missing; cannot check document status")
    track_id = str(track_id or "").strip()
    if not track_id:
        raise ValueError("track_id is required")

    req = request.Request(
        "{}/documents/{}/status".format(config["api_url"], parse.quote(track_id, safe="")),
        method="GET",
        headers=build_headers(config, include_optional=False),
    )
    return _normalize_response(_request_json(req, config["timeout"]))


__all__ = [
    "build_document_payload",
    "build_headers",
    "build_sii_config",
    "check_electronic_document_status",
    "send_electronic_document",
]
