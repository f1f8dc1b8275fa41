import base64
import io
import json
import time

import qrcode

from ..models.family import Family

INVITE_TYPE = "family-invite"


def build_invite(family: Family) -> dict:
    return {
        "type": INVITE_TYPE,
        "familyId": family.id,
        "familyName": family.name,
        "timestamp": int(time.time() * 1000),
    }


def qr_data_url(payload: dict) -> str:
    """Encode ``payload`` as JSON inside a QR code PNG data URL."""
    image = qrcode.make(json.dumps(payload, separators=(",", ":")))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode("ascii")
