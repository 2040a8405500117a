import io
from datetime import date
from decimal import Decimal

import pandas as pd
import pytest

from infra.almacen import AlmacenSQL, HistorialConciliaciones, crear_motor
from logic.lectura import secuencia_ids
from logic.modelos import Movimiento


def planilla(filas: list[list]) -> bytes:
    """xlsx en memoria con las filas tal cual (sin cabecera ni índice de pandas)."""
    buff = io.BytesIO()
    pd.DataFrame(filas).to_excel(buff, header=False, index=False, engine="openpyxl")
    return buff.getvalue()


def mov(id_: str, fecha: date, importe, descripcion: str = "X", **kw) -> Movimiento:
    return Movimiento(id=id_, fecha=fecha, importe=Decimal(str(importe)), descripcion=descripcion, **kw)


@pytest.fixture
def engine(tmp_path):
    eng = crear_motor(f"sqlite:///{tmp_path / 'ledger.db'}")
    yield eng
    eng.dispose()


@pytest.fixture
def almacen(engine):
    return AlmacenSQL(engine)


@pytest.fixture
def historial(engine):
    return HistorialConciliaciones(engine)


@pytest.fixture
def ids():
    return secuencia_ids("t")
