from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def parse_expiration(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Converte a expiração vinda do gateway para datetime em UTC.

    Aceita ISO 8601 ou "YYYY-MM-DD HH:MM:SS"; datas sem fuso são tratadas
    como UTC. Retorna None quando o valor não pode ser interpretado.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip().replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, "%d/%m/%Y %H:%M:%S")
            except ValueError:
                return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def expiration_or_default(value, now: datetime, default_minutes: int) -> datetime:
    return parse_expiration(value) or now + timedelta(minutes=default_minutes)
