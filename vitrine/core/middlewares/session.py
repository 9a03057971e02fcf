import logging
from fastapi import Request, Response

from vitrine.helpers.session.session_id import SESSION_HEADER, generate_session_id


def get_session_id(request: Request, response: Response) -> str:
    """Sessão do visitante: usa o X-Session-Id enviado ou gera um novo e devolve no header."""
    session_id = request.headers.get(SESSION_HEADER)
    if not session_id:
        session_id = generate_session_id()
        logging.info(f"CARRINHO >>> Nova sessão de visitante gerada: {session_id}")
    response.headers[SESSION_HEADER] = session_id
    return session_id
