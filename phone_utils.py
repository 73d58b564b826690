"""
Phone number helpers for transfer targets and inbound numbers
"""
import re
from urllib.parse import quote, unquote

NON_DIGITS = re.compile(r'\D')

def _digits(phone_number: str) -> str:
    return NON_DIGITS.sub('', phone_number)

def to_e164_format(phone_number: str) -> str:
    """+19787836427 style; 10-digit numbers are assumed to be US"""
    if not phone_number:
        return ""
    digits = _digits(phone_number)
    if len(digits) == 11 and digits.startswith('1'):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"

def format_phone_number(phone_number: str) -> str:
    """Display form: +1 (978) 783-6427, or (978) 783-6427 without a country code"""
    if not phone_number:
        return ""
    digits = _digits(phone_number)
    if len(digits) == 11 and digits.startswith('1'):
        return f"+1 ({digits[1:4]}) {digits[4:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
    return phone_number

def normalize_phone_number(phone_number: str) -> str:
    """Digits only, with the US country code added to 10-digit numbers"""
    if not phone_number:
        return ""
    digits = _digits(phone_number)
    return f"1{digits}" if len(digits) == 10 else digits

def encode_phone_for_url(phone_number: str) -> str:
    return quote(normalize_phone_number(phone_number), safe='')

def decode_phone_from_url(encoded_phone: str) -> str:
    return unquote(encoded_phone)
