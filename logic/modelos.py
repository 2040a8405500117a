from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Literal


Fuente = Literal["banco", "contabilidad"]
FUENTES: tuple[str, ...] = ("banco", "contabilidad")


@dataclass(frozen=True)
class Movimiento:
    id: str
    fecha: date                # día, sin hora
    importe: Decimal           # débito negativo, crédito positivo
    descripcion: str
    revisado: bool = False     # revisado por una persona
    nota: str | None = None
    huella: str | None = None  # solo en filas del ledger
    meta_origen: str = ""      # archivo de origen
    fila_original: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def a_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "fecha": self.fecha.isoformat(),
            "importe": str(self.importe),
            "descripcion": self.descripcion,
            "revisado": self.revisado,
            "nota": self.nota,
            "huella": self.huella,
            "meta_origen": self.meta_origen,
        }


@dataclass(frozen=True)
class Emparejamiento:
    id: str
    id_banco: str
    id_contabilidad: str
    importe: Decimal
    fecha_banco: date
    fecha_contabilidad: date
    desc_banco: str
    desc_contabilidad: str
    revisado: bool            # foto de ambos lados al conciliar
    nota: str | None = None

    def a_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "id_banco": self.id_banco,
            "id_contabilidad": self.id_contabilidad,
            "importe": str(self.importe),
            "fecha_banco": self.fecha_banco.isoformat(),
            "fecha_contabilidad": self.fecha_contabilidad.isoformat(),
            "desc_banco": self.desc_banco,
            "desc_contabilidad": self.desc_contabilidad,
            "revisado": self.revisado,
            "nota": self.nota,
        }


@dataclass(frozen=True)
class Resumen:
    total_conciliado: int
    total_solo_banco: int
    total_solo_contabilidad: int
    importe_conciliado: Decimal
    importe_solo_banco: Decimal
    importe_solo_contabilidad: Decimal

    def a_dict(self) -> dict[str, Any]:
        return {
            "total_conciliado": self.total_conciliado,
            "total_solo_banco": self.total_solo_banco,
            "total_solo_contabilidad": self.total_solo_contabilidad,
            "importe_conciliado": str(self.importe_conciliado),
            "importe_solo_banco": str(self.importe_solo_banco),
            "importe_solo_contabilidad": str(self.importe_solo_contabilidad),
        }


@dataclass(frozen=True)
class ResultadoConciliacion:
    conciliados: list[Emparejamiento]
    solo_banco: list[Movimiento]
    solo_contabilidad: list[Movimiento]
    resumen: Resumen
    generado_en: datetime

    def a_dict(self) -> dict[str, Any]:
        """Forma serializable a JSON (importes como texto, fechas ISO)."""
        return {
            "conciliados": [p.a_dict() for p in self.conciliados],
            "solo_banco": [m.a_dict() for m in self.solo_banco],
            "solo_contabilidad": [m.a_dict() for m in self.solo_contabilidad],
            "resumen": self.resumen.a_dict(),
            "generado_en": self.generado_en.isoformat(),
        }


@dataclass(frozen=True)
class ResumenIngesta:
    agregados: int
    omitidos: int
    total: int


@dataclass(frozen=True)
class ResultadoVerificacion:
    faltantes_en_ledger: list[Movimiento]
    sobrantes_en_ledger: list[Movimiento]


@dataclass(frozen=True)
class EstadisticasFuente:
    fecha_min: date | None
    fecha_max: date | None
    cantidad: int
