import logging
from typing import Optional


RAIZ = "conciliador"

_raiz: Optional[logging.Logger] = None


def _configurar_raiz(nivel: int) -> logging.Logger:
    global _raiz
    if _raiz is not None:
        return _raiz

    logger = logging.getLogger(RAIZ)
    logger.setLevel(nivel)

    if not logger.handlers:
        ch = logging.StreamHandler()
        ch.setLevel(nivel)
        fmt = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
        ch.setFormatter(fmt)
        logger.addHandler(ch)

    _raiz = logger
    return logger


def get_logger(modulo: str | None = None, nivel: int = logging.INFO) -> logging.Logger:
    """Logger `conciliador` (o `conciliador.<modulo>`) con un único handler en la raíz."""
    raiz = _configurar_raiz(nivel)
    if not modulo:
        return raiz
    return raiz.getChild(modulo)
