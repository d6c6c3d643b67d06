"""
Константы приложения Hassh
"""

# Тип токена по умолчанию
BEARER_TOKEN_TYPE = "bearer"  # nosec B105

# Заголовок для пароля публичной ссылки
SHARE_PASSWORD_HEADER = "X-Share-Password"  # nosec B105

# Путь публичной ссылки, отдаваемый владельцу
PUBLIC_SHARE_PATH = "/share"

# Сообщение о необходимости настроить Home Assistant
HA_NOT_CONFIGURED_MESSAGE = "Сначала настройте Home Assistant в настройках"
