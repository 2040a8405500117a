from __future__ import annotations

import math
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from numbers import Integral, Real

import pandas as pd


CERO = Decimal("0")

_SIMBOLOS = re.compile(r"[€$\s]")
_NUMERO_INICIAL = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_FECHA_DIA_PRIMERO = re.compile(r"^(\d{1,2})[/.](\d{1,2})[/.](\d{4})$")
_ANIO = re.compile(r"\d{4}")


def _es_nulo(valor) -> bool:
    if valor is None:
        return True
    try:
        return bool(pd.isna(valor))
    except (TypeError, ValueError):
        return False


def limpiar_importe(valor) -> Decimal:
    """Convierte un importe de planilla en Decimal.

    - Números se usan tal cual (NaN o infinito valen 0).
    - Textos: se quitan `€`, `$` y espacios. Con `,` y `.` a la vez, el punto
      es separador de miles y la coma decimal; con solo `,`, la coma es decimal.
    - Cualquier cosa que no se pueda leer vale 0, nunca levanta error.
    """
    if valor is None or isinstance(valor, bool):
        return CERO
    if isinstance(valor, Decimal):
        return valor if valor.is_finite() else CERO
    if isinstance(valor, Integral):
        return Decimal(int(valor))
    if isinstance(valor, Real):
        numero = float(valor)
        if not math.isfinite(numero):
            return CERO
        return Decimal(repr(numero))
    if not isinstance(valor, str):
        return CERO

    limpio = _SIMBOLOS.sub("", valor)
    if "," in limpio and "." in limpio:
        limpio = limpio.replace(".", "").replace(",", ".", 1)
    elif "," in limpio:
        limpio = limpio.replace(",", ".", 1)

    m = _NUMERO_INICIAL.match(limpio)
    if not m:
        return CERO
    try:
        numero = Decimal(m.group(0))
    except InvalidOperation:
        return CERO
    return numero if numero.is_finite() else CERO


def normalizar_fecha(valor) -> str | None:
    """Devuelve la fecha como `YYYY-MM-DD` o None si no es una fecha válida.

    Acepta objetos fecha, `DD/MM/YYYY`, `DD.MM.YYYY` y, como último recurso,
    cualquier texto con año de cuatro dígitos que entienda pandas.
    """
    if _es_nulo(valor) or isinstance(valor, bool):
        return None
    if isinstance(valor, datetime):
        return valor.date().isoformat()
    if isinstance(valor, date):
        return valor.isoformat()
    if not isinstance(valor, str):
        return None

    texto = valor.strip()
    if not texto:
        return None

    m = _FECHA_DIA_PRIMERO.match(texto)
    if m:
        dia, mes, anio = (int(g) for g in m.groups())
        try:
            return date(anio, mes, dia).isoformat()
        except ValueError:
            return None

    if not _ANIO.search(texto):
        return None
    ts = pd.to_datetime(texto, errors="coerce")
    if pd.isna(ts):
        return None
    return ts.date().isoformat()


def a_fecha(valor) -> date | None:
    iso = normalizar_fecha(valor)
    return date.fromisoformat(iso) if iso else None


def texto_descripcion(valor) -> str:
    """Texto de una celda sin sufijos `.0` cuando viene de un número."""
    if _es_nulo(valor):
        return ""
    if isinstance(valor, str):
        return valor.strip()
    if isinstance(valor, bool):
        return str(valor)
    if isinstance(valor, Integral):
        return str(int(valor))
    if isinstance(valor, Real):
        numero = float(valor)
        if math.isfinite(numero) and numero.is_integer():
            return str(int(numero))
        return str(valor)
    return str(valor).strip()
