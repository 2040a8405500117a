from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable

from logic.modelos import EstadisticasFuente, Fuente, Movimiento


class RepositorioMovimientos(ABC):
    """Ledger por fuente (banco / contabilidad) deduplicado por huella.

    La unicidad de la huella la garantiza el almacenamiento, no la
    aplicación: `insertar_si_ausente` tiene que ser atómico.
    """

    @abstractmethod
    def huellas_existentes(self, fuente: Fuente, huellas: Iterable[str]) -> set[str]:
        """Subconjunto de `huellas` que ya está en el ledger."""

    @abstractmethod
    def insertar_si_ausente(self, fuente: Fuente, mov: Movimiento, huella: str, origen: str) -> bool:
        """Inserta la fila; False si la huella ya existía."""

    @abstractmethod
    def consultar_rango(self, fuente: Fuente, inicio: date, fin: date) -> list[Movimiento]:
        """Filas con fecha en [inicio, fin], ordenadas por fecha."""

    @abstractmethod
    def marcar_revisado(self, fuente: Fuente, ids: Iterable[str], valor: bool) -> int:
        """Cantidad de filas efectivamente actualizadas."""

    @abstractmethod
    def anotar(self, fuente: Fuente, id_mov: str, nota: str | None) -> bool:
        ...

    @abstractmethod
    def estadisticas_anio(self, fuente: Fuente, anio: int | None = None) -> EstadisticasFuente:
        ...
