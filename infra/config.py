from __future__ import annotations
import yaml
from dataclasses import dataclass, field
from pathlib import Path


_RAIZ = Path(__file__).resolve().parent.parent


@dataclass(frozen=True)
class ConciliacionConfig:
    tolerancia_dias: int = 15
    tolerancia_importe: float = 0.01
    permitir_signo_invertido: bool = False


@dataclass(frozen=True)
class LecturaConfig:
    filas_cabecera: int = 10
    descripcion_por_defecto: str = "Sin descripción"


@dataclass(frozen=True)
class AlmacenamientoConfig:
    url: str = "sqlite:///conciliador.db"


@dataclass(frozen=True)
class Config:
    conciliacion: ConciliacionConfig = field(default_factory=ConciliacionConfig)
    lectura: LecturaConfig = field(default_factory=LecturaConfig)
    almacenamiento: AlmacenamientoConfig = field(default_factory=AlmacenamientoConfig)


def load_config(path: str | Path | None = None) -> Config:
    """Lee config.yaml (por defecto el de la raíz del repo).

    Si el archivo no existe se usan los valores por defecto.
    """
    path = Path(path) if path is not None else _RAIZ / "config.yaml"
    if not path.exists():
        return Config()

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    conc = ConciliacionConfig(**(data.get("conciliacion") or {}))
    lec = LecturaConfig(**(data.get("lectura") or {}))
    alm = AlmacenamientoConfig(**(data.get("almacenamiento") or {}))

    return Config(conciliacion=conc, lectura=lec, almacenamiento=alm)
