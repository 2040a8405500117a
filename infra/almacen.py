"""Ledger y historial de conciliaciones sobre SQLAlchemy.

Una tabla por fuente (`movimientos_banco`, `movimientos_contabilidad`) con
restricción UNIQUE sobre la huella: es la que garantiza que dos cargas
simultáneas del mismo movimiento no generen filas duplicadas.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Iterable, Iterator
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Numeric,
    String,
    Text,
    create_engine,
    delete,
    func,
    select,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from infra.logger import get_logger
from logic.errores import ErrorAlmacenamiento, FuenteDesconocida
from logic.modelos import EstadisticasFuente, Fuente, Movimiento, ResultadoConciliacion
from logic.repositorio import RepositorioMovimientos


log = get_logger("almacen")

Base = declarative_base()

_LOTE_IN = 500


def _nuevo_id() -> str:
    return str(uuid4())


def _ahora() -> datetime:
    return datetime.now(timezone.utc)


class _ColumnasLedger:
    id = Column(String(36), primary_key=True, default=_nuevo_id)
    fecha = Column(Date, nullable=False, index=True)
    importe = Column(Numeric(14, 2), nullable=False)
    descripcion = Column(Text, nullable=False)
    huella = Column(String(64), nullable=False, unique=True)
    meta_origen = Column(String(255), nullable=False, default="")
    revisado = Column(Boolean, nullable=False, default=False)
    nota = Column(Text, nullable=True)
    ingresado_en = Column(DateTime(timezone=True), nullable=False, default=_ahora)


class MovimientoBanco(_ColumnasLedger, Base):
    __tablename__ = "movimientos_banco"


class MovimientoContabilidad(_ColumnasLedger, Base):
    __tablename__ = "movimientos_contabilidad"


class Conciliacion(Base):
    __tablename__ = "conciliaciones"

    id = Column(String(36), primary_key=True, default=_nuevo_id)
    creado_en = Column(DateTime(timezone=True), nullable=False, default=_ahora)
    nombre = Column(String(255), nullable=True)
    revisada = Column(Boolean, nullable=False, default=False)
    resumen = Column(JSON, nullable=False)
    datos = Column(JSON, nullable=False)


TABLAS = {
    "banco": MovimientoBanco,
    "contabilidad": MovimientoContabilidad,
}


def tabla_de(fuente: str):
    try:
        return TABLAS[fuente]
    except KeyError:
        raise FuenteDesconocida(f"Fuente desconocida: {fuente!r} (se espera 'banco' o 'contabilidad')") from None


def crear_motor(url: str) -> Engine:
    """Crea el engine y las tablas que falten."""
    try:
        engine = create_engine(url)
        Base.metadata.create_all(engine)
    except SQLAlchemyError as e:
        raise ErrorAlmacenamiento(f"No se pudo inicializar la base de datos: {e}") from e
    log.info("Base de datos lista: %s", engine.url)
    return engine


class _BaseSQL:
    def __init__(self, engine: Engine):
        self.engine = engine
        self._sesiones = sessionmaker(bind=engine, expire_on_commit=False)

    @contextmanager
    def _sesion(self) -> Iterator[Session]:
        """Sesión en una transacción; los errores de la base salen como ErrorAlmacenamiento.

        IntegrityError se deja pasar: quien llama decide qué significa.
        """
        try:
            with self._sesiones.begin() as s:
                yield s
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            raise ErrorAlmacenamiento(f"Error de almacenamiento: {e}") from e


def _a_movimiento(fila: _ColumnasLedger) -> Movimiento:
    return Movimiento(
        id=fila.id,
        fecha=fila.fecha,
        importe=Decimal(fila.importe),
        descripcion=fila.descripcion,
        revisado=bool(fila.revisado),
        nota=fila.nota,
        huella=fila.huella,
        meta_origen=fila.meta_origen,
    )


class AlmacenSQL(_BaseSQL, RepositorioMovimientos):
    """Ledger deduplicado por huella."""

    def huellas_existentes(self, fuente: Fuente, huellas: Iterable[str]) -> set[str]:
        tabla = tabla_de(fuente)
        pendientes = list(dict.fromkeys(huellas))
        encontradas: set[str] = set()
        with self._sesion() as s:
            for i in range(0, len(pendientes), _LOTE_IN):
                lote = pendientes[i:i + _LOTE_IN]
                encontradas.update(s.scalars(select(tabla.huella).where(tabla.huella.in_(lote))))
        return encontradas

    def insertar_si_ausente(self, fuente: Fuente, mov: Movimiento, huella: str, origen: str) -> bool:
        tabla = tabla_de(fuente)
        try:
            with self._sesion() as s:
                s.add(tabla(
                    fecha=mov.fecha,
                    importe=mov.importe,
                    descripcion=mov.descripcion,
                    huella=huella,
                    meta_origen=origen,
                    revisado=mov.revisado,
                    nota=mov.nota,
                ))
        except IntegrityError:
            # otra carga la insertó primero
            log.debug("Huella %s ya presente en %s", huella, fuente)
            return False
        return True

    def consultar_rango(self, fuente: Fuente, inicio: date, fin: date) -> list[Movimiento]:
        tabla = tabla_de(fuente)
        consulta = (
            select(tabla)
            .where(tabla.fecha >= inicio, tabla.fecha <= fin)
            .order_by(tabla.fecha, tabla.ingresado_en)
        )
        with self._sesion() as s:
            return [_a_movimiento(f) for f in s.scalars(consulta)]

    def marcar_revisado(self, fuente: Fuente, ids: Iterable[str], valor: bool) -> int:
        tabla = tabla_de(fuente)
        ids = list(dict.fromkeys(ids))
        if not ids:
            return 0
        actualizados = 0
        with self._sesion() as s:
            for i in range(0, len(ids), _LOTE_IN):
                res = s.execute(
                    update(tabla)
                    .where(tabla.id.in_(ids[i:i + _LOTE_IN]))
                    .values(revisado=valor)
                    .execution_options(synchronize_session=False)
                )
                actualizados += res.rowcount or 0
        log.info("%s: %d movimientos marcados revisado=%s", fuente, actualizados, valor)
        return actualizados

    def anotar(self, fuente: Fuente, id_mov: str, nota: str | None) -> bool:
        tabla = tabla_de(fuente)
        with self._sesion() as s:
            res = s.execute(
                update(tabla)
                .where(tabla.id == id_mov)
                .values(nota=nota)
                .execution_options(synchronize_session=False)
            )
            return bool(res.rowcount)

    def estadisticas_anio(self, fuente: Fuente, anio: int | None = None) -> EstadisticasFuente:
        tabla = tabla_de(fuente)
        consulta = select(func.min(tabla.fecha), func.max(tabla.fecha), func.count(tabla.id))
        if anio is not None:
            consulta = consulta.where(
                tabla.fecha >= date(anio, 1, 1), tabla.fecha <= date(anio, 12, 31)
            )
        with self._sesion() as s:
            fecha_min, fecha_max, cantidad = s.execute(consulta).one()
        return EstadisticasFuente(fecha_min=fecha_min, fecha_max=fecha_max, cantidad=int(cantidad or 0))


class HistorialConciliaciones(_BaseSQL):
    """Conciliaciones guardadas, con nombre y marca de revisada."""

    @staticmethod
    def _cabecera(fila: Conciliacion) -> dict[str, Any]:
        return {
            "id": fila.id,
            "creado_en": fila.creado_en.isoformat() if fila.creado_en else None,
            "nombre": fila.nombre,
            "revisada": bool(fila.revisada),
            "resumen": fila.resumen,
        }

    def guardar(self, resultado: ResultadoConciliacion, nombre: str | None = None) -> str:
        datos = resultado.a_dict()
        fila = Conciliacion(nombre=nombre, resumen=datos["resumen"], datos=datos)
        with self._sesion() as s:
            s.add(fila)
            s.flush()
            id_conc = fila.id
        log.info("Conciliación guardada: %s", id_conc)
        return id_conc

    def listar(self) -> list[dict[str, Any]]:
        with self._sesion() as s:
            filas = s.scalars(select(Conciliacion).order_by(Conciliacion.creado_en.desc()))
            return [self._cabecera(f) for f in filas]

    def obtener(self, id_conc: str) -> dict[str, Any] | None:
        with self._sesion() as s:
            fila = s.get(Conciliacion, id_conc)
            if fila is None:
                return None
            out = self._cabecera(fila)
            out["datos"] = fila.datos
            return out

    def _actualizar(self, id_conc: str, **valores) -> bool:
        with self._sesion() as s:
            res = s.execute(
                update(Conciliacion)
                .where(Conciliacion.id == id_conc)
                .values(**valores)
                .execution_options(synchronize_session=False)
            )
            return bool(res.rowcount)

    def renombrar(self, id_conc: str, nombre: str) -> bool:
        return self._actualizar(id_conc, nombre=nombre)

    def marcar_revisada(self, id_conc: str, valor: bool = True) -> bool:
        return self._actualizar(id_conc, revisada=valor)

    def eliminar(self, id_conc: str) -> bool:
        with self._sesion() as s:
            res = s.execute(delete(Conciliacion).where(Conciliacion.id == id_conc))
            return bool(res.rowcount)
