from __future__ import annotations
from datetime import date
from typing import Iterable

from infra.config import Config, LecturaConfig
from infra.logger import get_logger
from logic import verificacion
from logic.conciliacion import Parametros, conciliar
from logic.errores import FuenteDesconocida, HistorialNoConfigurado, RangoInvalido
from logic.ingesta import ingerir
from logic.lectura import GeneradorId, parsear_con
from logic.modelos import (
    FUENTES,
    EstadisticasFuente,
    Fuente,
    Movimiento,
    ResultadoConciliacion,
    ResultadoVerificacion,
    ResumenIngesta,
)
from logic.normalizacion import a_fecha
from logic.repositorio import RepositorioMovimientos


log = get_logger("servicio")


def _validar_fuente(fuente: str) -> Fuente:
    if fuente not in FUENTES:
        raise FuenteDesconocida(f"Fuente desconocida: {fuente!r} (se espera 'banco' o 'contabilidad')")
    return fuente  # type: ignore[return-value]


def _como_fecha(valor: date | str, nombre: str) -> date:
    fecha = a_fecha(valor)
    if fecha is None:
        raise RangoInvalido(f"Fecha de {nombre} inválida: {valor!r}")
    return fecha


def _rango(inicio: date | str, fin: date | str) -> tuple[date, date]:
    desde, hasta = _como_fecha(inicio, "inicio"), _como_fecha(fin, "fin")
    if desde > hasta:
        raise RangoInvalido(f"Rango invertido: {desde} > {hasta}")
    return desde, hasta


class ServicioConciliacion:
    """Punto de entrada del conciliador: lectura, conciliación, ledger y verificación.

    Usage:
        servicio = ServicioConciliacion.desde_config(load_config())
        servicio.ingerir("banco", contenido, "extracto_marzo.xlsx")
        resultado = servicio.conciliar_rango("2024-03-01", "2024-03-31")
    """

    def __init__(
        self,
        repo: RepositorioMovimientos,
        params: Parametros | None = None,
        generar_id: GeneradorId | None = None,
        historial=None,
        lectura: LecturaConfig | None = None,
    ) -> None:
        self.repo = repo
        self.params = params or Parametros()
        self.lectura = lectura or LecturaConfig()
        self.generar_id = generar_id
        self.historial = historial

    @classmethod
    def desde_config(cls, cfg: Config) -> "ServicioConciliacion":
        from infra.almacen import AlmacenSQL, HistorialConciliaciones, crear_motor

        engine = crear_motor(cfg.almacenamiento.url)
        return cls(
            repo=AlmacenSQL(engine),
            params=Parametros.desde_config(cfg.conciliacion),
            historial=HistorialConciliaciones(engine),
            lectura=cfg.lectura,
        )

    # ---- planillas y conciliación puntual ----
    def parsear(self, contenido: bytes) -> list[Movimiento]:
        return parsear_con(contenido, self.lectura, self.generar_id)

    def conciliar(self, banco: list[Movimiento], contabilidad: list[Movimiento]) -> ResultadoConciliacion:
        return conciliar(banco, contabilidad, self.params)

    def conciliar_archivos(self, contenido_banco: bytes, contenido_contabilidad: bytes) -> ResultadoConciliacion:
        return self.conciliar(self.parsear(contenido_banco), self.parsear(contenido_contabilidad))

    # ---- ledger ----
    def ingerir(self, fuente: str, contenido: bytes, origen: str) -> ResumenIngesta:
        fuente = _validar_fuente(fuente)
        return ingerir(self.repo, fuente, self.parsear(contenido), origen)

    def consultar_rango(self, fuente: str, inicio: date | str, fin: date | str) -> list[Movimiento]:
        fuente = _validar_fuente(fuente)
        desde, hasta = _rango(inicio, fin)
        return self.repo.consultar_rango(fuente, desde, hasta)

    def conciliar_rango(self, inicio: date | str, fin: date | str) -> ResultadoConciliacion:
        """Concilia todo lo acumulado en el ledger entre dos fechas (inclusive)."""
        desde, hasta = _rango(inicio, fin)
        banco = self.repo.consultar_rango("banco", desde, hasta)
        contabilidad = self.repo.consultar_rango("contabilidad", desde, hasta)
        log.info(
            "Conciliación global %s..%s: %d banco, %d contabilidad",
            desde, hasta, len(banco), len(contabilidad),
        )
        return self.conciliar(banco, contabilidad)

    def marcar_revisado(self, fuente: str, ids: Iterable[str], valor: bool) -> dict[str, int]:
        fuente = _validar_fuente(fuente)
        return {"actualizados": self.repo.marcar_revisado(fuente, ids, valor)}

    def anotar(self, fuente: str, id_mov: str, nota: str | None) -> bool:
        fuente = _validar_fuente(fuente)
        return self.repo.anotar(fuente, id_mov, nota)

    def estado(self, anio: int | None = None) -> dict[str, EstadisticasFuente]:
        return {fuente: self.repo.estadisticas_anio(fuente, anio) for fuente in FUENTES}

    # ---- verificación ----
    def verificar(self, fuente: str, contenido: bytes) -> ResultadoVerificacion:
        fuente = _validar_fuente(fuente)
        return verificacion.verificar(self.repo, fuente, contenido, self.generar_id, self.lectura)

    def importar_faltantes(self, fuente: str, movimientos: Iterable[Movimiento]) -> ResumenIngesta:
        fuente = _validar_fuente(fuente)
        return verificacion.importar_faltantes(self.repo, fuente, movimientos)

    # ---- historial ----
    def guardar_resultado(self, resultado: ResultadoConciliacion, nombre: str | None = None) -> str:
        if self.historial is None:
            raise HistorialNoConfigurado("Servicio sin historial configurado")
        return self.historial.guardar(resultado, nombre)
