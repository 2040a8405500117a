from __future__ import annotations
from typing import Iterable

from infra.config import LecturaConfig
from infra.logger import get_logger
from logic.ingesta import huella_de, ingerir
from logic.lectura import GeneradorId, parsear_con
from logic.modelos import Fuente, Movimiento, ResultadoVerificacion, ResumenIngesta
from logic.repositorio import RepositorioMovimientos


log = get_logger("verificacion")

ORIGEN_VERIFICACION = "Importado via verificación"


def comparar(
    repo: RepositorioMovimientos,
    fuente: Fuente,
    movimientos: list[Movimiento],
) -> ResultadoVerificacion:
    """Diferencias entre los movimientos de un archivo de control y el ledger."""
    if not movimientos:
        return ResultadoVerificacion(faltantes_en_ledger=[], sobrantes_en_ledger=[])

    pares = [(m, huella_de(m)) for m in movimientos]
    conjunto_archivo = {h for _, h in pares}
    en_ledger = repo.huellas_existentes(fuente, conjunto_archivo)
    faltantes = [m for m, h in pares if h not in en_ledger]

    inicio = min(m.fecha for m in movimientos)
    fin = max(m.fecha for m in movimientos)
    sobrantes = [
        fila for fila in repo.consultar_rango(fuente, inicio, fin)
        if fila.huella not in conjunto_archivo
    ]

    log.info(
        "Verificación %s %s..%s: %d faltantes en ledger, %d sobrantes",
        fuente, inicio, fin, len(faltantes), len(sobrantes),
    )
    return ResultadoVerificacion(faltantes_en_ledger=faltantes, sobrantes_en_ledger=sobrantes)


def verificar(
    repo: RepositorioMovimientos,
    fuente: Fuente,
    contenido: bytes,
    generar_id: GeneradorId | None = None,
    lectura: LecturaConfig = LecturaConfig(),
) -> ResultadoVerificacion:
    return comparar(repo, fuente, parsear_con(contenido, lectura, generar_id))


def importar_faltantes(
    repo: RepositorioMovimientos,
    fuente: Fuente,
    movimientos: Iterable[Movimiento],
    origen: str = ORIGEN_VERIFICACION,
) -> ResumenIngesta:
    """Pasa al ledger los faltantes de una verificación (misma idempotencia que `ingerir`)."""
    return ingerir(repo, fuente, movimientos, origen)
