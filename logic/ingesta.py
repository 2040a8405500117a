from __future__ import annotations

import hashlib
from datetime import date
from decimal import Decimal
from typing import Iterable

from infra.logger import get_logger
from logic.modelos import Fuente, Movimiento, ResumenIngesta
from logic.repositorio import RepositorioMovimientos


log = get_logger("ingesta")


def _importe_canonico(importe: Decimal) -> str:
    """`-120.00` -> `-120`, `50.50` -> `50.5` (sin notación exponencial)."""
    texto = format(Decimal(importe).normalize(), "f")
    return "0" if texto in ("-0", "0") else texto


def huella(fecha: date, importe: Decimal, descripcion: str) -> str:
    """SHA-256 de `fecha|importe|descripcion`. No depende del id ni del orden."""
    clave = f"{fecha.isoformat()}|{_importe_canonico(importe)}|{descripcion}"
    return hashlib.sha256(clave.encode("utf-8")).hexdigest()


def huella_de(mov: Movimiento) -> str:
    return huella(mov.fecha, mov.importe, mov.descripcion)


def ingerir(
    repo: RepositorioMovimientos,
    fuente: Fuente,
    movimientos: Iterable[Movimiento],
    origen: str,
) -> ResumenIngesta:
    """Agrega al ledger los movimientos cuya huella no existe todavía.

    Repetir la carga del mismo archivo no agrega nada: todo cuenta como omitido.
    """
    pares = [(m, huella_de(m)) for m in movimientos]
    vistas = repo.huellas_existentes(fuente, {h for _, h in pares})

    agregados = omitidos = 0
    for mov, h in pares:
        if h in vistas:
            omitidos += 1
            continue
        if repo.insertar_si_ausente(fuente, mov, h, origen):
            agregados += 1
        else:
            omitidos += 1
        vistas.add(h)

    log.info("Ingesta %s (%s): %d agregados, %d omitidos", fuente, origen, agregados, omitidos)
    return ResumenIngesta(agregados=agregados, omitidos=omitidos, total=len(pares))
