from __future__ import annotations

import io
import itertools
import uuid
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real
from typing import Any, Callable, ClassVar, NamedTuple, Union

import pandas as pd

from infra.config import LecturaConfig
from infra.logger import get_logger
from logic.errores import ArchivoIlegible
from logic.modelos import Movimiento
from logic.normalizacion import a_fecha, limpiar_importe, texto_descripcion


_LECTURA = LecturaConfig()
log = get_logger("lectura")

GeneradorId = Callable[[], str]


def generar_uuid() -> str:
    return str(uuid.uuid4())


def secuencia_ids(prefijo: str = "mov") -> GeneradorId:
    """Generador determinista: `mov-1`, `mov-2`, ..."""
    contador = itertools.count(1)
    return lambda: f"{prefijo}-{next(contador)}"


class Extraccion(NamedTuple):
    fecha_cruda: Any
    descripcion: str
    importe: Decimal


def _tiene_valor(v) -> bool:
    """Mismo criterio que una celda "verdadera": ni vacía, ni cero."""
    if v is None or v is False:
        return False
    if isinstance(v, str):
        return v != ""
    if isinstance(v, Real):
        return v != 0
    return True


def _primero(fila: dict[str, Any], *claves: str):
    for clave in claves:
        v = fila.get(clave)
        if _tiene_valor(v):
            return v
    return None


# ==========================================================
# Formatos de planilla
# ==========================================================
@dataclass(frozen=True)
class FormatoBanco:
    """Extracto bancario: Data de Movimento | Descrição | Montante | D/C."""
    nombre: ClassVar[str] = "banco"
    firma: ClassVar[tuple[str, ...]] = ("Data de Movimento", "Montante")

    def extraer(self, fila: dict[str, Any]) -> Extraccion:
        importe = abs(limpiar_importe(fila.get("Montante")))
        if texto_descripcion(fila.get("D/C")).upper() == "D":
            importe = -importe
        return Extraccion(
            fila.get("Data de Movimento"),
            texto_descripcion(fila.get("Descrição")),
            importe,
        )


@dataclass(frozen=True)
class FormatoContabilidad:
    """Listado contable (PHC): Documento | Data | Movimento | Descricao | Saldo."""
    nombre: ClassVar[str] = "contabilidad"
    firma: ClassVar[tuple[str, ...]] = ("Saldo", "Data", "Documento")

    def extraer(self, fila: dict[str, Any]) -> Extraccion:
        desc = texto_descripcion(_primero(fila, "Descricao", "Descrição"))
        motivo = texto_descripcion(fila.get("Movimento"))
        return Extraccion(
            fila.get("Data"),
            f"{motivo} {desc}".strip(),
            limpiar_importe(fila.get("Saldo")),
        )


@dataclass(frozen=True)
class FormatoGenerico:
    """Sin firma conocida: se prueban sinónimos de cabecera en orden."""
    nombre: ClassVar[str] = "generico"
    firma: ClassVar[tuple[str, ...]] = ()

    COLS_FECHA: ClassVar[tuple[str, ...]] = ("Data", "Date", "Movimento", "data")
    COLS_DESCRIPCION: ClassVar[tuple[str, ...]] = (
        "Descrição", "Descricao", "Description", "Histórico", "Historico",
    )
    COLS_IMPORTE: ClassVar[tuple[str, ...]] = ("Valor", "Amount", "Montante")
    COLS_DEBITO: ClassVar[tuple[str, ...]] = ("Débito", "Debito", "Debit")
    COLS_CREDITO: ClassVar[tuple[str, ...]] = ("Crédito", "Credito", "Credit")

    def _descripcion(self, fila: dict[str, Any]) -> str:
        desc = texto_descripcion(_primero(fila, *self.COLS_DESCRIPCION))
        entidad = fila.get("Entidade")
        if _tiene_valor(entidad):
            entidad = texto_descripcion(entidad)
            return f"{entidad} ({desc})" if desc else entidad
        return desc

    def _importe(self, fila: dict[str, Any]) -> Decimal:
        for col in self.COLS_IMPORTE:
            if fila.get(col) is not None:
                return limpiar_importe(fila[col])

        debito = _primero(fila, *self.COLS_DEBITO)
        credito = _primero(fila, *self.COLS_CREDITO)
        importe = limpiar_importe(credito) - limpiar_importe(debito)
        if importe == 0 and (debito is not None or credito is not None):
            # Débito cargado en positivo sin crédito: es una salida
            importe = limpiar_importe(credito) or -limpiar_importe(debito)
        return importe

    def extraer(self, fila: dict[str, Any]) -> Extraccion:
        return Extraccion(
            _primero(fila, *self.COLS_FECHA),
            self._descripcion(fila),
            self._importe(fila),
        )


Formato = Union[FormatoBanco, FormatoContabilidad, FormatoGenerico]

FORMATOS_CON_FIRMA: tuple[Formato, ...] = (FormatoBanco(), FormatoContabilidad())


# ==========================================================
# Lectura
# ==========================================================
def leer_filas(contenido: bytes) -> list[list[Any]]:
    """Filas crudas de la primera hoja, sin filas totalmente vacías.

    Levanta ArchivoIlegible si el contenido no es una planilla.
    """
    try:
        df = pd.read_excel(io.BytesIO(contenido), sheet_name=0, header=None, dtype=object)
    except Exception as e:
        raise ArchivoIlegible(f"No se pudo abrir la planilla: {e}") from e

    filas: list[list[Any]] = []
    for fila in df.itertuples(index=False, name=None):
        valores = [None if pd.isna(v) else v for v in fila]
        if any(v is not None for v in valores):
            filas.append(valores)
    return filas


def _serializar(fila: list[Any]) -> str:
    return "|".join("" if v is None else str(v) for v in fila)


def detectar_formato(filas: list[list[Any]], filas_cabecera: int | None = None) -> tuple[Formato, int]:
    """Devuelve (formato, índice de la fila de cabecera).

    Revisa las primeras `filas_cabecera` filas buscando las palabras de cada firma;
    sin coincidencias se usa el formato genérico con cabecera en la fila 0.
    """
    if filas_cabecera is None:
        filas_cabecera = _LECTURA.filas_cabecera
    for i, fila in enumerate(filas[:filas_cabecera]):
        texto = _serializar(fila)
        for formato in FORMATOS_CON_FIRMA:
            if all(token in texto for token in formato.firma):
                return formato, i
    return FormatoGenerico(), 0


def _filas_como_dict(filas: list[list[Any]], indice_cabecera: int) -> list[dict[str, Any]]:
    cabecera = ["" if v is None else str(v).strip() for v in filas[indice_cabecera]]
    out: list[dict[str, Any]] = []
    for fila in filas[indice_cabecera + 1:]:
        registro: dict[str, Any] = {}
        for nombre, valor in zip(cabecera, fila):
            if not nombre or valor is None or nombre in registro:
                continue
            registro[nombre] = valor
        out.append(registro)
    return out


def parsear(
    contenido: bytes,
    generar_id: GeneradorId | None = None,
    filas_cabecera: int | None = None,
    descripcion_por_defecto: str | None = None,
) -> list[Movimiento]:
    """Lee una planilla y devuelve los movimientos en el orden del archivo.

    Se descartan las filas sin fecha válida y las de importe cero.
    """
    generar_id = generar_id or generar_uuid
    por_defecto = descripcion_por_defecto or _LECTURA.descripcion_por_defecto

    filas = leer_filas(contenido)
    if not filas:
        log.info("Planilla vacía")
        return []

    formato, indice = detectar_formato(filas, filas_cabecera)
    log.info("Formato detectado: %s (cabecera en fila %d)", formato.nombre, indice)

    out: list[Movimiento] = []
    sin_fecha = sin_importe = 0
    for registro in _filas_como_dict(filas, indice):
        ext = formato.extraer(registro)
        fecha = a_fecha(ext.fecha_cruda)
        if fecha is None:
            sin_fecha += 1
            continue
        if ext.importe == 0:
            sin_importe += 1
            continue
        out.append(Movimiento(
            id=generar_id(),
            fecha=fecha,
            importe=ext.importe,
            descripcion=ext.descripcion.strip() or por_defecto,
            fila_original=registro,
        ))

    if sin_fecha or sin_importe:
        log.info("Filas descartadas: %d sin fecha, %d con importe cero", sin_fecha, sin_importe)
    return out


def parsear_con(contenido: bytes, lectura: LecturaConfig, generar_id: GeneradorId | None = None) -> list[Movimiento]:
    """`parsear` con los valores de la sección `lectura` de la configuración."""
    return parsear(
        contenido,
        generar_id=generar_id,
        filas_cabecera=lectura.filas_cabecera,
        descripcion_por_defecto=lectura.descripcion_por_defecto,
    )
