"""
Двухфакторная аутентификация: TOTP, QR-коды и резервные коды
"""

import base64
import io
import secrets

import pyotp
import qrcode
from qrcode.image.svg import SvgPathImage

from hassh.core.config import settings
from hassh.core.security import get_password_hash, verify_password

BACKUP_CODES_COUNT = 10


def generate_otp_secret(username: str) -> tuple[str, str]:
    """
    Сгенерировать новый TOTP секрет

    Args:
        username: Имя пользователя (account name в приложении-аутентификаторе)

    Returns:
        tuple[str, str]: Секрет в base32 и provisioning URI (otpauth://)
    """
    secret = pyotp.random_base32()
    uri = pyotp.TOTP(secret).provisioning_uri(
        name=username, issuer_name=settings.OTP_ISSUER
    )
    return secret, uri


def verify_otp(secret: str, code: str) -> bool:
    """Проверить TOTP код (допускается сдвиг на один интервал)"""
    if not secret or not code:
        return False
    return pyotp.TOTP(secret).verify(code.strip(), valid_window=1)


def render_qr_code(data: str) -> str:
    """Сформировать QR-код как data URL (SVG)"""
    image = qrcode.make(data, image_factory=SvgPathImage)
    buffer = io.BytesIO()
    image.save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def generate_backup_codes(count: int = BACKUP_CODES_COUNT) -> list[str]:
    """Сгенерировать одноразовые резервные коды (8 hex символов)"""
    return [secrets.token_hex(4).upper() for _ in range(count)]


def hash_backup_codes(codes: list[str]) -> list[str]:
    """Захешировать резервные коды для хранения"""
    return [get_password_hash(code) for code in codes]


def consume_backup_code(hashed_codes: list[str], code: str) -> list[str] | None:
    """
    Найти и погасить резервный код

    Args:
        hashed_codes: Хеши оставшихся резервных кодов
        code: Введенный код

    Returns:
        Optional[list[str]]: Оставшиеся хеши без использованного кода,
        или None если код не подошел
    """
    normalized = code.strip().upper()
    for index, hashed in enumerate(hashed_codes):
        if verify_password(normalized, hashed):
            return hashed_codes[:index] + hashed_codes[index + 1 :]
    return None
