from __future__ import annotations

import unittest

from app.mappers.header_mapper import (
    first_present,
    has_required_kpi_columns,
    is_catalog_header,
    map_kpi_record,
    normalize_header,
    normalize_record,
)


class TestHeaderMapper(unittest.TestCase):
    def test_normalize_header_strips_accents_case_and_whitespace(self) -> None:
        self.assertEqual(normalize_header("  USUÁRIO "), "usuario")
        self.assertEqual(normalize_header("Pedidos   Dia"), "pedidos_dia")
        self.assertEqual(normalize_header("Descrição"), "descricao")

    def test_accent_variants_resolve_to_same_field(self) -> None:
        with_accent = map_kpi_record({"Usuário": "Ana", "Data": "", "Pedidos": 1, "Volume": 2, "Peso": 3})
        without_accent = map_kpi_record({"usuario": "Ana", "DATA": "", "pedidos": 1, "volume": 2, "peso": 3})

        self.assertEqual(with_accent, without_accent)
        self.assertEqual(with_accent["user_name"], "Ana")

    def test_first_alias_in_table_order_wins(self) -> None:
        mapped = map_kpi_record({"Caixas": 9, "Volume": 4, "User": "x", "Data": "", "Pedidos": 1, "Peso": 1})

        self.assertEqual(mapped["boxes_count"], 4)

    def test_missing_field_maps_to_none(self) -> None:
        mapped = map_kpi_record({"Usuario": "Ana"})

        self.assertIsNone(mapped["orders_count"])
        self.assertEqual(set(mapped), {"user_name", "work_date", "orders_count", "boxes_count", "weight_kg"})

    def test_required_kpi_columns_detection(self) -> None:
        self.assertTrue(has_required_kpi_columns(["Usuário", "Data", "Pedidos", "Caixas", "KG"]))
        self.assertFalse(has_required_kpi_columns(["Usuário", "Data", "Pedidos", "Volume"]))
        self.assertFalse(has_required_kpi_columns([None, 12, "Data"]))

    def test_catalog_header_needs_order_and_lot(self) -> None:
        self.assertTrue(is_catalog_header(["PEDIDO", "Lote", "Rota"]))
        self.assertFalse(is_catalog_header(["Pedido", "Rota"]))

    def test_first_present_skips_none_aliases(self) -> None:
        normalized = normalize_record({"Pedido": None, "Order": "123"})

        self.assertEqual(first_present(normalized, "order_number"), "123")
        self.assertIsNone(first_present(normalized, "lot"))


if __name__ == "__main__":
    unittest.main()
