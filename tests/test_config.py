from infra.config import Config, load_config


def test_config_del_repo():
    cfg = load_config()
    assert cfg.conciliacion.tolerancia_dias == 15
    assert cfg.conciliacion.tolerancia_importe == 0.01
    assert cfg.conciliacion.permitir_signo_invertido is False
    assert cfg.lectura.filas_cabecera == 10
    assert cfg.lectura.descripcion_por_defecto == "Sin descripción"


def test_sin_archivo_usa_valores_por_defecto(tmp_path):
    assert load_config(tmp_path / "no_existe.yaml") == Config()


def test_secciones_parciales(tmp_path):
    ruta = tmp_path / "config.yaml"
    ruta.write_text("lectura:\n  filas_cabecera: 20\n", encoding="utf-8")

    cfg = load_config(ruta)

    assert cfg.lectura.filas_cabecera == 20
    assert cfg.lectura.descripcion_por_defecto == "Sin descripción"
    assert cfg.conciliacion.tolerancia_dias == 15
    assert cfg.almacenamiento.url.startswith("sqlite:///")
