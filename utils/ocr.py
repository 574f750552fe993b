# =============================================================================
# utils/ocr.py
# =============================================================================
# PURPOSE:
#   Read an Instapay payment screenshot and pre-fill the collection form.
#
# HOW IT WORKS:
#   1. The image is base64-encoded and sent, together with a fixed prompt,
#      to a multimodal messages API (URL / model / key from config)
#   2. The model answers with JSON text, sometimes wrapped in ```json fences
#   3. We strip the fences, parse the JSON and clean up the amount
#   4. build_extraction() then tries to match the sender to a sponsor
#
# ERRORS:
#   Anything that goes wrong (no API key, HTTP error, unreadable answer)
#   raises OcrError. The Collect page catches it and shows it inline; the
#   operator can always type the fields by hand.
# =============================================================================

import base64
import json
import os
import re

import requests

import config
from utils.matching import match_sender_name

FIELDS = ["sender_name", "amount", "bank", "recipient", "reference", "date"]

_FENCE = re.compile(r"```json|```")


class OcrError(Exception):
    """Raised when a screenshot could not be read."""


def _coerce_amount(value):
    """Amount from the model's answer as a number (0 when missing/unreadable)."""
    if isinstance(value, (int, float)):
        return value
    try:
        return float(str(value).replace(",", "").strip())
    except (TypeError, ValueError):
        return 0


def parse_reply(text):
    """
    Parse the model's text answer into the payment fields.

    EXAMPLE:
        parse_reply('```json\\n{"sender_name": "Ali", "amount": "1,500"}\\n```')
        → {"sender_name": "Ali", "amount": 1500.0, "bank": "", ...}
    """
    cleaned = _FENCE.sub("", text or "").strip()
    try:
        data = json.loads(cleaned)
    except ValueError as e:
        raise OcrError(f"Could not parse OCR reply: {e}") from e

    if not isinstance(data, dict):
        raise OcrError("OCR reply is not a JSON object")

    fields = {name: data.get(name) or "" for name in FIELDS}
    fields["sender_name"] = str(fields["sender_name"]).strip()
    fields["amount"] = _coerce_amount(data.get("amount"))
    return fields


def extract_payment_fields(image_bytes, media_type="image/png"):
    """
    Send a screenshot to the OCR service and return the payment fields.

    PARAMETERS:
        image_bytes (bytes): The uploaded image
        media_type (str): Its MIME type (image/png, image/jpeg, ...)

    RETURNS:
        dict: sender_name, amount (number), bank, recipient, reference, date

    RAISES:
        OcrError: missing API key, HTTP failure, or an unreadable reply
    """
    api_key = os.environ.get(config.OCR_API_KEY_ENV)
    if not api_key:
        raise OcrError(f"{config.OCR_API_KEY_ENV} is not set")

    payload = {
        "model": config.OCR_MODEL,
        "max_tokens": config.OCR_MAX_TOKENS,
        "messages": [{
            "role": "user",
            "content": [
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": media_type or "image/png",
                        "data": base64.b64encode(image_bytes).decode("ascii"),
                    },
                },
                {"type": "text", "text": config.OCR_PROMPT},
            ],
        }],
    }
    headers = {
        "content-type": "application/json",
        "x-api-key": api_key,
        "anthropic-version": config.OCR_API_VERSION,
    }

    try:
        response = requests.post(
            config.OCR_API_URL,
            json=payload,
            headers=headers,
            timeout=config.OCR_TIMEOUT_SECONDS,
        )
        response.raise_for_status()
        data = response.json()
    except requests.RequestException as e:
        print(f"[ERROR] OCR request failed: {e}")
        raise OcrError(f"OCR request failed: {e}") from e
    except ValueError as e:
        raise OcrError(f"OCR response is not JSON: {e}") from e

    try:
        text = data["content"][0]["text"]
    except (KeyError, IndexError, TypeError):
        text = ""

    fields = parse_reply(text)
    print(f"[OK] OCR read payment from '{fields['sender_name']}': {fields['amount']}")
    return fields


def build_extraction(fields, sponsors):
    """
    Add the sponsor match to extracted fields.

    RETURNS:
        dict: the fields plus
            matched_sponsor - sponsor dict or None
            confidence      - OCR_CONFIDENCE_MATCHED if matched, else
                              OCR_CONFIDENCE_UNMATCHED
    """
    matched = match_sender_name(fields.get("sender_name"), sponsors)
    return {
        **fields,
        "matched_sponsor": matched,
        "confidence": config.OCR_CONFIDENCE_MATCHED if matched else config.OCR_CONFIDENCE_UNMATCHED,
    }
