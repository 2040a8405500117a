from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable

from infra.config import ConciliacionConfig, LecturaConfig
from logic.lectura import GeneradorId, parsear_con
from logic.modelos import Emparejamiento, Movimiento, Resumen, ResultadoConciliacion


@dataclass(frozen=True)
class Parametros:
    tolerancia_importe: Decimal = Decimal("0.01")   # estricta: |a - b| < tolerancia
    tolerancia_dias: int = 15                       # inclusiva: |dias| <= tolerancia
    permitir_signo_invertido: bool = False

    @classmethod
    def desde_config(cls, cfg: ConciliacionConfig) -> "Parametros":
        return cls(
            tolerancia_importe=Decimal(str(cfg.tolerancia_importe)),
            tolerancia_dias=int(cfg.tolerancia_dias),
            permitir_signo_invertido=bool(cfg.permitir_signo_invertido),
        )


def _ordenar_por_fecha(movs: Iterable[Movimiento]) -> list[Movimiento]:
    # sorted es estable: a igual fecha se respeta el orden de entrada
    return sorted(movs, key=lambda m: m.fecha)


def _candidatos(
    b: Movimiento,
    pool: list[Movimiento],
    reclamados: set[int],
    params: Parametros,
    signo_invertido: bool = False,
) -> list[tuple[int, int]]:
    """(distancia en días, índice) de cada movimiento del pool que podría emparejarse con `b`."""
    out: list[tuple[int, int]] = []
    for idx, c in enumerate(pool):
        if idx in reclamados:
            continue
        if signo_invertido:
            dif_importe = abs(abs(c.importe) - abs(b.importe))
        else:
            dif_importe = abs(c.importe - b.importe)
        if dif_importe >= params.tolerancia_importe:
            continue
        dias = abs((c.fecha - b.fecha).days)
        if dias > params.tolerancia_dias:
            continue
        out.append((dias, idx))
    return out


def _emparejar(b: Movimiento, c: Movimiento) -> Emparejamiento:
    return Emparejamiento(
        id=f"{b.id}||{c.id}",
        id_banco=b.id,
        id_contabilidad=c.id,
        importe=b.importe,
        fecha_banco=b.fecha,
        fecha_contabilidad=c.fecha,
        desc_banco=b.descripcion,
        desc_contabilidad=c.descripcion,
        revisado=b.revisado and c.revisado,
        nota=b.nota or c.nota,
    )


def resumir(
    conciliados: list[Emparejamiento],
    solo_banco: list[Movimiento],
    solo_contabilidad: list[Movimiento],
) -> Resumen:
    return Resumen(
        total_conciliado=len(conciliados),
        total_solo_banco=len(solo_banco),
        total_solo_contabilidad=len(solo_contabilidad),
        importe_conciliado=sum((p.importe for p in conciliados), Decimal("0")),
        importe_solo_banco=sum((m.importe for m in solo_banco), Decimal("0")),
        importe_solo_contabilidad=sum((m.importe for m in solo_contabilidad), Decimal("0")),
    )


def conciliar(
    banco: list[Movimiento],
    contabilidad: list[Movimiento],
    params: Parametros = Parametros(),
    generado_en: datetime | None = None,
) -> ResultadoConciliacion:
    """Empareja movimientos de banco con los de contabilidad.

    Recorre el banco por fecha ascendente y, para cada movimiento, toma del
    pool contable el candidato de mismo importe (dentro de la tolerancia) más
    cercano en fecha dentro de la ventana de días. A igual distancia gana el
    primero del pool. Cada movimiento contable se usa una sola vez.

    Con `permitir_signo_invertido`, y solo si no hay candidato del mismo
    signo, se aceptan importes de igual valor absoluto.
    """
    banco_ord = _ordenar_por_fecha(banco)
    pool = _ordenar_por_fecha(contabilidad)
    reclamados: set[int] = set()

    conciliados: list[Emparejamiento] = []
    solo_banco: list[Movimiento] = []

    for b in banco_ord:
        candidatos = _candidatos(b, pool, reclamados, params)
        if not candidatos and params.permitir_signo_invertido:
            candidatos = _candidatos(b, pool, reclamados, params, signo_invertido=True)
        if not candidatos:
            solo_banco.append(b)
            continue

        _, idx = min(candidatos)
        reclamados.add(idx)
        conciliados.append(_emparejar(b, pool[idx]))

    solo_contabilidad = [c for idx, c in enumerate(pool) if idx not in reclamados]

    return ResultadoConciliacion(
        conciliados=conciliados,
        solo_banco=solo_banco,
        solo_contabilidad=solo_contabilidad,
        resumen=resumir(conciliados, solo_banco, solo_contabilidad),
        generado_en=generado_en or datetime.now(timezone.utc),
    )


def conciliar_archivos(
    contenido_banco: bytes,
    contenido_contabilidad: bytes,
    params: Parametros = Parametros(),
    generar_id: GeneradorId | None = None,
    lectura: LecturaConfig = LecturaConfig(),
) -> ResultadoConciliacion:
    """Conciliación puntual de dos planillas, sin pasar por el ledger."""
    banco = parsear_con(contenido_banco, lectura, generar_id)
    contabilidad = parsear_con(contenido_contabilidad, lectura, generar_id)
    return conciliar(banco, contabilidad, params)
