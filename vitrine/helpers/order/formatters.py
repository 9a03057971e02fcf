from babel.numbers import format_currency as babel_format_currency

def format_currency(value: float, locale_str: str = 'pt_BR') -> str:
    return babel_format_currency(value, 'BRL', locale=locale_str)

def format_countdown(seconds: float) -> str:
    seconds = max(int(seconds), 0)
    minutes, seconds = divmod(seconds, 60)
    return f"{minutes % 60:02d}:{seconds:02d}"

def only_digits(value: str) -> str:
    return "".join(ch for ch in (value or "") if ch.isdigit())
