from gedcom_csv.tables import PromotedValueTable, Table, TableRegistry


def test_ensure_table_is_idempotent_and_keeps_columns():
    registry = TableRegistry()
    table = registry.ensure_table("INDI", ["id"])
    table.add_columns(["NAME"])

    again = registry.ensure_table("INDI", ["id", "OTHER"])

    assert again is table
    assert table.column_list == ["id", "NAME"]


def test_add_row_unions_columns_in_discovery_order():
    registry = TableRegistry()
    registry.add_row("FAM", {"id": "@F1@", "HUSB": "@I1@"})
    registry.add_row("FAM", {"id": "@F2@", "WIFE": "@I2@"})

    table = registry["FAM"]
    assert table.column_list == ["id", "HUSB", "WIFE"]
    assert len(table.rows) == 2


def test_junction_table_is_named_source_first():
    registry = TableRegistry()
    registry.add_junction_row("FAM", "@F1@", "INDI", "@I1@")

    assert "FAM_INDI" in registry
    assert "INDI_FAM" not in registry
    assert registry["FAM_INDI"].rows == [{"FAM": "@F1@", "INDI": "@I1@"}]


def test_self_link_junction_keeps_both_ends():
    registry = TableRegistry()
    registry.add_junction_row("NOTE", "@N1@", "NOTE", "@N2@")

    table = registry["NOTE_NOTE"]
    assert table.column_list == ["NOTE", "NOTE2"]
    assert table.rows == [{"NOTE": "@N1@", "NOTE2": "@N2@"}]


def test_synthesized_ids_use_running_count():
    table = Table(name="HEAD")
    assert table.next_synthesized_id() == "@HEAD0@"
    assert table.next_synthesized_id() == "@HEAD1@"


def test_promoted_value_table_deduplicates():
    promoted = PromotedValueTable("OCCU", "gen_")

    first = promoted.id_for("Farmer")
    second = promoted.id_for("Smith")
    again = promoted.id_for("Farmer")

    assert first == again == "@gen_OCCU0@"
    assert second == "@gen_OCCU1@"
    table = promoted.to_table()
    assert table.column_list == ["id", "OCCU"]
    assert table.rows == [
        {"id": "@gen_OCCU0@", "OCCU": "Farmer"},
        {"id": "@gen_OCCU1@", "OCCU": "Smith"},
    ]


def test_merge_table_appends_into_existing():
    registry = TableRegistry()
    registry.add_row("EDUC", {"id": "@EDUC0@", "PLAC": "Boston"})
    promoted = PromotedValueTable("EDUC", "gen_")
    promoted.id_for("College")

    registry.merge_table(promoted.to_table())

    table = registry["EDUC"]
    assert table.column_list == ["id", "PLAC", "EDUC"]
    assert table.rows[-1] == {"id": "@gen_EDUC0@", "EDUC": "College"}


def test_merge_table_adds_new_table_verbatim():
    registry = TableRegistry()
    promoted = PromotedValueTable("RELI", "gen_")
    promoted.id_for("Quaker")
    incoming = promoted.to_table()

    registry.merge_table(incoming)

    assert registry["RELI"] is incoming
