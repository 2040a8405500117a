from datetime import date

from conftest import mov, planilla
from logic.ingesta import ingerir
from logic.verificacion import ORIGEN_VERIFICACION, comparar, importar_faltantes, verificar


A = mov("a", date(2024, 3, 2), "-10.00", "A")
B = mov("b", date(2024, 3, 4), "20.00", "B")
C = mov("c", date(2024, 3, 20), "30.00", "C")
D = mov("d", date(2024, 3, 1), "-40.00", "D")
E = mov("e", date(2024, 3, 6), "50.00", "E")


def test_faltantes_y_sobrantes(almacen):
    ingerir(almacen, "banco", [A, B, C], "ledger.xlsx")

    res = comparar(almacen, "banco", [B, D, E])

    assert [m.id for m in res.faltantes_en_ledger] == ["d", "e"]
    # C queda fuera del rango del archivo (01/03 a 06/03)
    assert [m.descripcion for m in res.sobrantes_en_ledger] == ["A"]


def test_importar_faltantes_y_reverificar(almacen):
    ingerir(almacen, "banco", [A, B], "ledger.xlsx")
    res = comparar(almacen, "banco", [B, D, E])

    imp = importar_faltantes(almacen, "banco", res.faltantes_en_ledger)
    assert (imp.agregados, imp.omitidos) == (2, 0)
    # repetir la importación no duplica
    assert importar_faltantes(almacen, "banco", res.faltantes_en_ledger).agregados == 0

    otra = comparar(almacen, "banco", [B, D, E])
    assert otra.faltantes_en_ledger == []
    assert [m.descripcion for m in otra.sobrantes_en_ledger] == ["A"]

    origenes = {m.descripcion: m.meta_origen for m in almacen.consultar_rango("banco", date(2024, 3, 1), date(2024, 3, 31))}
    assert origenes["D"] == ORIGEN_VERIFICACION


def test_archivo_de_control_vacio(almacen):
    ingerir(almacen, "contabilidad", [A, B], "ledger.xlsx")

    res = verificar(almacen, "contabilidad", planilla([["Data", "Valor", "Descrição"]]))

    assert res.faltantes_en_ledger == []
    assert res.sobrantes_en_ledger == []


def test_verificar_planilla(almacen):
    contenido = planilla([
        ["Data de Movimento", "Descrição", "Montante", "D/C"],
        ["01/03/2024", "Compra", "120,00", "D"],
        ["03/03/2024", "Depósito", "80,00", "C"],
    ])
    ingerir(almacen, "banco", [mov("x", date(2024, 3, 1), "-120", "Compra"), mov("y", date(2024, 3, 2), "5", "Otro")], "l.xlsx")

    res = verificar(almacen, "banco", contenido)

    assert [m.descripcion for m in res.faltantes_en_ledger] == ["Depósito"]
    assert [m.descripcion for m in res.sobrantes_en_ledger] == ["Otro"]
