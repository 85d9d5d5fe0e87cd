"""
Static PIX "copia e cola" payload (BR Code, EMV QRCPS-MPM)

Used when the gateway never returns a dynamic QR code for a charge.
"""

import re
import unicodedata
from decimal import Decimal
from typing import Optional


GUI_PIX = "br.gov.bcb.pix"


def _field(field_id: str, value: str) -> str:
    return f"{field_id}{len(value):02d}{value}"


def _ascii_upper(value: str, max_length: int) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    return normalized.upper()[:max_length]


def crc16_ccitt(payload: str) -> str:
    """CRC16-CCITT-FALSE (poly 0x1021, init 0xFFFF) as 4 uppercase hex digits"""
    crc = 0xFFFF
    for byte in payload.encode("utf-8"):
        crc ^= byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ 0x1021) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc:04X}"


def build_static_pix_payload(
    pix_key: str,
    merchant_name: str,
    merchant_city: str,
    amount: Optional[Decimal] = None,
    txid: str = "***",
    description: Optional[str] = None,
) -> str:
    """
    Build a static PIX BR Code

    Args:
        pix_key: Receiver PIX key (email, phone, CPF/CNPJ or random key)
        merchant_name: Receiver name (max 25 chars)
        merchant_city: Receiver city (max 15 chars)
        amount: Fixed amount, omitted when None
        txid: Reference label (alphanumeric, max 25 chars)
        description: Optional free text shown to the payer

    Returns:
        Payload string ending with the CRC16 field
    """
    account = _field("00", GUI_PIX) + _field("01", pix_key.strip())
    if description:
        account += _field("02", description[:40])

    txid = re.sub(r"[^A-Za-z0-9]", "", txid)[:25] or "***"

    payload = (
        _field("00", "01")
        + _field("26", account)
        + _field("52", "0000")
        + _field("53", "986")
    )
    if amount is not None:
        payload += _field("54", f"{Decimal(amount):.2f}")
    payload += (
        _field("58", "BR")
        + _field("59", _ascii_upper(merchant_name, 25))
        + _field("60", _ascii_upper(merchant_city, 15))
        + _field("62", _field("05", txid))
    )

    payload += "6304"
    return payload + crc16_ccitt(payload)
