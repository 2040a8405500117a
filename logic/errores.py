"""Errores del conciliador expuestos al usuario como (tipo, mensaje)."""
from __future__ import annotations


class ErrorConciliador(Exception):
    tipo = "error"

    def __init__(self, mensaje: str):
        super().__init__(mensaje)
        self.mensaje = mensaje

    def como_dict(self) -> dict[str, str]:
        return {"tipo": self.tipo, "mensaje": self.mensaje}


class ArchivoIlegible(ErrorConciliador):
    """El contenido no es una planilla que se pueda abrir."""
    tipo = "archivo_ilegible"


class FuenteDesconocida(ErrorConciliador):
    tipo = "fuente_desconocida"


class RangoInvalido(ErrorConciliador):
    tipo = "rango_invalido"


class ErrorAlmacenamiento(ErrorConciliador):
    tipo = "almacenamiento"


class HistorialNoConfigurado(ErrorConciliador):
    tipo = "historial_no_configurado"
