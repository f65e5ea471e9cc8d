# ProTakeoff imports
from protakeoff import config
from protakeoff.errors import InvalidInputError
from protakeoff.materials import GeometryKind, Material, MaterialCatalog, MaterialCategory, parse_decimal

# Third-party imports
import pytest


@pytest.fixture
def catalog():
    """Starter catalog"""
    return MaterialCatalog.default()


class TestMaterialCatalog:
    """Tests for MaterialCatalog"""

    def test_default_catalog_matches_config(self, catalog):
        """Test that the seed is loaded in configuration order"""
        assert [m.id for m in catalog.list()] == [entry["id"] for entry in config.DEFAULT_MATERIALS]

    def test_default_catalog_spans_all_categories(self, catalog):
        """Test that every category has at least one material"""
        categories = {m.category for m in catalog}
        assert categories == set(MaterialCategory)

    def test_find(self, catalog):
        """Test lookup by id"""
        material = catalog.find("wall-internal")
        assert material.name == "Parede Interna"
        assert material.geometry_kind == GeometryKind.LINEAR
        assert material.line_width == pytest.approx(0.15)
        assert catalog.find("does-not-exist") is None

    def test_contains_and_len(self, catalog):
        """Test membership and size"""
        assert "floor-ceramic" in catalog
        assert len(catalog) == len(config.DEFAULT_MATERIALS)

    def test_by_category(self, catalog):
        """Test filtering by category"""
        measures = catalog.by_category("measure")
        assert measures and all(m.is_measure for m in measures)

    def test_duplicate_ids_rejected(self):
        """Test that material ids must be unique"""
        m = Material(id="a", name="A", category="wall", geometry_kind="linear", color="#000")
        with pytest.raises(ValueError):
            MaterialCatalog([m, m])


class TestUpdateHeight:
    """Tests for MaterialCatalog.update_height"""

    def test_sets_height_on_linear(self, catalog):
        """Test that linear materials accept a height"""
        assert catalog.update_height("wall-internal", 2.8) is True
        assert catalog.find("wall-internal").height == pytest.approx(2.8)

    def test_accepts_decimal_comma_string(self, catalog):
        """Test that the height field accepts '2,80'"""
        catalog.update_height("wall-external", "2,80")
        assert catalog.find("wall-external").height == pytest.approx(2.8)

    def test_blank_clears_height(self, catalog):
        """Test that clearing the field removes the height"""
        catalog.update_height("wall-internal", 3)
        catalog.update_height("wall-internal", "  ")
        assert catalog.find("wall-internal").height is None

    def test_ignored_for_area_and_point(self, catalog):
        """Test that non-linear materials ignore height edits"""
        assert catalog.update_height("floor-ceramic", 2.8) is False
        assert catalog.find("floor-ceramic").height is None
        assert catalog.update_height("structure-column", 3.0) is False
        assert catalog.find("structure-column").height is None

    def test_unknown_material_ignored(self, catalog):
        """Test that unknown ids are ignored"""
        assert catalog.update_height("nope", 2.0) is False

    def test_negative_height_rejected(self, catalog):
        """Test that negative heights raise and leave the material unchanged"""
        catalog.update_height("wall-internal", 2.5)
        with pytest.raises(InvalidInputError):
            catalog.update_height("wall-internal", -1)
        assert catalog.find("wall-internal").height == pytest.approx(2.5)


class TestMaterial:
    """Tests for Material invariants"""

    def test_geometry_kind_is_fixed(self):
        """Test that the geometry kind cannot change after creation"""
        m = Material(id="w", name="W", category="wall", geometry_kind="linear", color="#000")
        with pytest.raises(AttributeError):
            m.geometry_kind = GeometryKind.AREA

    def test_string_enums_are_coerced(self):
        """Test that category and kind strings become enums"""
        m = Material(id="f", name="F", category="floor", geometry_kind="area", color="#000")
        assert m.category is MaterialCategory.FLOOR
        assert m.geometry_kind is GeometryKind.AREA
        assert m.category.label == "Pisos"

    def test_invalid_kind_rejected(self):
        """Test that unknown geometry kinds are rejected"""
        with pytest.raises(ValueError):
            Material(id="x", name="X", category="wall", geometry_kind="volume", color="#000")


class TestParseDecimal:
    """Tests for parse_decimal"""

    def test_numbers_pass_through(self):
        """Test numeric input"""
        assert parse_decimal(4) == 4.0

    def test_rejects_text(self):
        """Test non-numeric input"""
        with pytest.raises(InvalidInputError):
            parse_decimal("três")

    @pytest.mark.parametrize("text", ["3_50", "1e2", "0x10", "2,5,0", "2.5.0", "+", "."])
    def test_rejects_non_decimal_literals(self, text):
        """Test that only plain decimals are accepted (no grouping, exponents or hex)"""
        with pytest.raises(InvalidInputError):
            parse_decimal(text)

    @pytest.mark.parametrize("text, expected", [("2,80", 2.8), ("-1.5", -1.5), (",5", 0.5), ("3.", 3.0)])
    def test_accepts_plain_decimals(self, text, expected):
        """Test both decimal separators and signs"""
        assert parse_decimal(text) == pytest.approx(expected)
