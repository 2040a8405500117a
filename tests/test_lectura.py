from datetime import date, datetime
from decimal import Decimal

import pytest

from logic.errores import ArchivoIlegible
from logic.lectura import (
    FormatoBanco,
    FormatoContabilidad,
    FormatoGenerico,
    detectar_formato,
    leer_filas,
    parsear,
    secuencia_ids,
)
from conftest import planilla


EXTRACTO_BANCO = [
    ["Extracto de conta", None, None, None, None],
    ["Conta: 0001 2345 6789", None, None, None, None],
    ["Data de Movimento", "Data Valor", "Descrição", "Montante", "D/C"],
    ["01/03/2024", "01/03/2024", "Compra supermercado", "120,00", "D"],
    ["02/03/2024", "02/03/2024", "Transferência recebida", "50,5", "C"],
    ["03/03/2024", "03/03/2024", "Comissão", "0,00", "D"],
    ["Saldo final", None, None, "1.000,00", None],
    ["04/03/2024", "04/03/2024", None, "-7,30", "D"],
]

LISTADO_PHC = [
    ["Extracto de conta corrente", None, None, None, None],
    ["Documento", "Data      ", "Movimento", "Descricao", "Saldo               "],
    ["DOC1", "02.01.2025", "Talão de Depósito", "Cliente A", "1.500,00"],
    ["DOC2", "03.01.2025", None, None, "-20,5"],
    ["DOC3", "  .  .    ", "Saldo anterior", None, "900,00"],
    ["DOC4", "04.01.2025", "Pagamento", "Fornecedor B", "0"],
]


def test_detecta_formato_banco_tras_filas_de_titulo():
    formato, indice = detectar_formato(leer_filas(planilla(EXTRACTO_BANCO)))
    assert isinstance(formato, FormatoBanco)
    assert indice == 2


def test_detecta_formato_contabilidad_con_cabeceras_con_espacios():
    formato, indice = detectar_formato(leer_filas(planilla(LISTADO_PHC)))
    assert isinstance(formato, FormatoContabilidad)
    assert indice == 1


def test_sin_firma_usa_generico_con_cabecera_en_primera_fila():
    filas = [["Data", "Valor", "Descrição"], ["2024-01-01", 10, "A"]]
    formato, indice = detectar_formato(filas)
    assert isinstance(formato, FormatoGenerico)
    assert indice == 0


def test_firma_fuera_de_las_filas_revisadas_no_se_detecta():
    filas = [["titulo"]] * 10 + [["Data de Movimento", "Descrição", "Montante", "D/C"]]
    formato, _ = detectar_formato(filas)
    assert isinstance(formato, FormatoGenerico)


def test_filas_de_cabecera_configurables():
    filas = leer_filas(planilla(EXTRACTO_BANCO))
    formato, _ = detectar_formato(filas, filas_cabecera=2)
    assert isinstance(formato, FormatoGenerico)

    formato, indice = detectar_formato(filas, filas_cabecera=3)
    assert isinstance(formato, FormatoBanco)
    assert indice == 2


def test_parsear_extracto_bancario():
    movs = parsear(planilla(EXTRACTO_BANCO), generar_id=secuencia_ids("b"))

    assert [m.fecha for m in movs] == [date(2024, 3, 1), date(2024, 3, 2), date(2024, 3, 4)]
    assert [m.importe for m in movs] == [Decimal("-120.00"), Decimal("50.5"), Decimal("-7.30")]
    assert movs[0].descripcion == "Compra supermercado"
    assert movs[2].descripcion == "Sin descripción"
    assert [m.id for m in movs] == ["b-1", "b-2", "b-3"]
    assert movs[0].fila_original["D/C"] == "D"
    assert not any(m.revisado for m in movs)


def test_banco_credito_siempre_positivo():
    filas = [
        ["Data de Movimento", "Descrição", "Montante", "D/C"],
        ["05/03/2024", "Devolução", "-30,00", "C"],
    ]
    (m,) = parsear(planilla(filas))
    assert m.importe == Decimal("30.00")


def test_parsear_listado_contable():
    movs = parsear(planilla(LISTADO_PHC), generar_id=secuencia_ids("c"))

    assert len(movs) == 2
    assert movs[0].fecha == date(2025, 1, 2)
    assert movs[0].descripcion == "Talão de Depósito Cliente A"
    assert movs[0].importe == Decimal("1500.00")
    assert movs[1].descripcion == "Sin descripción"
    assert movs[1].importe == Decimal("-20.5")


def test_generico_entidad_y_debito_credito():
    filas = [
        ["Data", "Entidade", "Descrição", "Débito", "Crédito"],
        ["2024-03-05", "ACME", "Fatura 12", 100, None],
        ["2024-03-06", None, "Depósito", None, "250"],
        ["2024-03-07", "Loja", None, 0, 0],
        ["2024-03-08", "Banco", None, "15,00", None],
    ]
    movs = parsear(planilla(filas))

    assert [(m.descripcion, m.importe) for m in movs] == [
        ("ACME (Fatura 12)", Decimal("-100")),
        ("Depósito", Decimal("250")),
        ("Banco", Decimal("-15.00")),
    ]


def test_generico_valor_directo_y_sinonimos_de_fecha():
    filas = [
        ["Date", "Description", "Amount"],
        [datetime(2024, 1, 10), "Card payment", -42.5],
        ["10/01/2024", "Refund", "12.30"],
        [None, "Sin fecha", 3],
    ]
    movs = parsear(planilla(filas))
    assert [(m.fecha, m.importe) for m in movs] == [
        (date(2024, 1, 10), Decimal("-42.5")),
        (date(2024, 1, 10), Decimal("12.30")),
    ]


def test_importe_cero_nunca_sale_del_parser():
    for filas in (
        [["Data de Movimento", "Descrição", "Montante", "D/C"], ["01/03/2024", "x", "0", "D"]],
        [["Documento", "Data", "Saldo"], ["D1", "01.03.2024", "0,00"]],
        [["Data", "Valor"], ["01/03/2024", 0]],
    ):
        assert parsear(planilla(filas)) == []


def test_ids_unicos_por_defecto():
    movs = parsear(planilla(EXTRACTO_BANCO))
    assert len({m.id for m in movs}) == len(movs)


@pytest.mark.parametrize("contenido", [b"", b"esto no es una planilla", b"PK\x03\x04roto"])
def test_archivo_ilegible(contenido):
    with pytest.raises(ArchivoIlegible) as exc:
        parsear(contenido)
    assert exc.value.como_dict()["tipo"] == "archivo_ilegible"
