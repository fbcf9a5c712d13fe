import logging

from .config import settings


def configurar_logs(nome: str) -> logging.Logger:
    """Devolve o logger do serviço, configurando o logging raiz na primeira chamada."""
    logger = logging.getLogger(nome)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    return logger
