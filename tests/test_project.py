# ProTakeoff imports
from protakeoff import config
from protakeoff.errors import InvalidShapeError, LastSheetError
from protakeoff.materials import GeometryKind
from protakeoff.project import Project
from protakeoff.shapes import ImageState, Point, Shape

# Third-party imports
import pytest


def make_shape(material_id="wall-internal", kind=GeometryKind.LINEAR, n=2, hidden=False):
    points = [Point(i * 10.0, i * 5.0) for i in range(n)]
    return Shape(material_id=material_id, points=points, geometry_kind=kind,
                 closed=(kind == GeometryKind.AREA), hidden=hidden)


@pytest.fixture
def project():
    """Project with the starter catalog and a single empty sheet"""
    return Project()


class TestAdd:
    """Tests for Project.add"""

    def test_linear_with_one_point_rejected(self, project):
        """Test that a linear shape needs at least 2 points"""
        with pytest.raises(InvalidShapeError):
            project.add(make_shape(n=1))
        assert project.shapes() == []

    def test_linear_with_two_points_accepted(self, project):
        """Test that a 2-point linear shape is stored on the active sheet"""
        shape = project.add(make_shape(n=2))
        assert project.active_sheet.shapes == [shape]

    def test_area_needs_three_points(self, project):
        """Test area minimum point count"""
        with pytest.raises(InvalidShapeError):
            project.add(make_shape("floor-ceramic", GeometryKind.AREA, n=2))
        project.add(make_shape("floor-ceramic", GeometryKind.AREA, n=3))

    def test_point_needs_one_point(self, project):
        """Test point minimum point count"""
        with pytest.raises(InvalidShapeError):
            project.add(make_shape("structure-column", GeometryKind.POINT, n=0))
        project.add(make_shape("structure-column", GeometryKind.POINT, n=1))

    def test_unknown_material_rejected(self, project):
        """Test that the material must resolve in the catalog"""
        with pytest.raises(InvalidShapeError):
            project.add(make_shape(material_id="unobtainium"))

    def test_kind_must_match_material(self, project):
        """Test that a shape cannot use a geometry kind different from its material"""
        with pytest.raises(InvalidShapeError):
            project.add(make_shape("wall-internal", GeometryKind.POINT, n=1))
        with pytest.raises(InvalidShapeError):
            project.add(make_shape("floor-ceramic", GeometryKind.LINEAR, n=3))
        assert project.shapes() == []

    def test_duplicate_id_rejected(self, project):
        """Test that the same shape cannot be added twice"""
        shape = project.add(make_shape())
        with pytest.raises(InvalidShapeError):
            project.add(shape)
        assert len(project.shapes()) == 1


class TestRemove:
    """Tests for the removal operations"""

    def test_remove_last(self, project):
        """Test that the most recent shape on the active sheet is dropped"""
        first = project.add(make_shape())
        project.add(make_shape())
        project.remove_last()
        assert project.active_sheet.shapes == [first]

    def test_remove_last_on_empty_sheet(self, project):
        """Test that remove_last is a no-op on an empty sheet"""
        assert project.remove_last() is None

    def test_remove_one_searches_all_sheets(self, project):
        """Test that removal by id works on a non-active sheet"""
        shape = project.add(make_shape())
        project.create_sheet("B")
        assert project.remove_one(shape.id) is shape
        assert project.shapes() == []

    def test_remove_one_unknown(self, project):
        """Test that unknown ids are ignored"""
        assert project.remove_one("missing") is None

    def test_remove_by_material_across_sheets(self, project):
        """Test bulk removal of a material on every sheet"""
        project.add(make_shape("wall-internal"))
        keep = project.add(make_shape("wall-external"))
        project.create_sheet("B")
        project.add(make_shape("wall-internal"))
        assert project.remove_by_material("wall-internal") == 2
        assert project.shapes() == [keep]
        assert project.catalog.find("wall-internal") is not None

    def test_clear_sheet(self, project):
        """Test that clearing only affects one sheet"""
        project.add(make_shape())
        first_id = project.active_sheet_id
        project.create_sheet("B")
        project.add(make_shape())
        assert project.clear_sheet() == 1
        assert len(project.get_sheet(first_id).shapes) == 1


class TestVisibility:
    """Tests for the visibility toggles"""

    def test_toggle_single(self, project):
        """Test that a single toggle flips the flag"""
        shape = project.add(make_shape())
        assert project.toggle_visibility(shape.id) is True
        assert project.toggle_visibility(shape.id) is False

    def test_toggle_single_on_other_sheet(self, project):
        """Test that the toggle finds shapes on any sheet"""
        shape = project.add(make_shape())
        project.create_sheet()
        project.toggle_visibility(shape.id)
        assert shape.hidden

    def test_material_toggle_all_hidden_shows_all(self, project):
        """Test that when all shapes are hidden they all become visible"""
        shapes = [project.add(make_shape(hidden=True)) for _ in range(3)]
        assert project.toggle_visibility_for_material("wall-internal") is False
        assert not any(s.hidden for s in shapes)

    def test_material_toggle_mixed_hides_all(self, project):
        """Test that with 2 hidden + 1 visible all become hidden (not a per-shape flip)"""
        shapes = [project.add(make_shape(hidden=h)) for h in (True, True, False)]
        assert project.toggle_visibility_for_material("wall-internal") is True
        assert all(s.hidden for s in shapes)

    def test_material_toggle_all_visible_hides_all(self, project):
        """Test that all visible shapes become hidden"""
        shapes = [project.add(make_shape()) for _ in range(2)]
        project.toggle_visibility_for_material("wall-internal")
        assert all(s.hidden for s in shapes)

    def test_material_toggle_only_touches_that_material(self, project):
        """Test that other materials keep their state"""
        other = project.add(make_shape("wall-external"))
        project.add(make_shape("wall-internal"))
        project.toggle_visibility_for_material("wall-internal")
        assert not other.hidden

    def test_material_toggle_without_shapes(self, project):
        """Test that a material with no shapes is a no-op"""
        assert project.toggle_visibility_for_material("wall-internal") is None


class TestSheets:
    """Tests for sheet management"""

    def test_project_starts_with_one_sheet(self, project):
        """Test the default sheet"""
        assert len(project.sheets) == 1
        assert project.active_sheet.name == config.DEFAULT_SHEET_NAME

    def test_create_sheet_becomes_active(self, project):
        """Test that a new sheet is empty and active"""
        sheet = project.create_sheet("Térreo")
        assert project.active_sheet is sheet
        assert sheet.shapes == []
        assert len(project.sheets) == 2

    def test_create_sheet_default_name(self, project):
        """Test generated sheet names"""
        assert project.create_sheet().name == "Prancha 2"

    def test_delete_last_sheet_fails(self, project):
        """Test that the only sheet cannot be deleted"""
        with pytest.raises(LastSheetError):
            project.delete_sheet(project.active_sheet_id)
        assert len(project.sheets) == 1

    def test_delete_active_sheet_falls_back_to_first(self, project):
        """Test that deleting the active sheet activates the first remaining one"""
        first = project.active_sheet
        project.create_sheet("B")
        third = project.create_sheet("C")
        project.delete_sheet(third.id)
        assert project.active_sheet is first

    def test_delete_sheet_drops_its_shapes(self, project):
        """Test that shapes go with their sheet"""
        project.create_sheet("B")
        shape = project.add(make_shape())
        project.delete_sheet(project.active_sheet_id)
        assert project.find_shape(shape.id) is None

    def test_rename_ignores_blank(self, project):
        """Test that blank names are ignored"""
        sheet_id = project.active_sheet_id
        assert project.rename_sheet(sheet_id, "   ") is False
        assert project.active_sheet.name == config.DEFAULT_SHEET_NAME
        assert project.rename_sheet(sheet_id, " Cobertura ") is True
        assert project.active_sheet.name == "Cobertura"

    def test_iter_shapes_scope(self, project):
        """Test active-sheet vs whole-project scope"""
        project.add(make_shape())
        project.create_sheet()
        project.add(make_shape())
        assert len(project.shapes(active_only=True)) == 1
        assert len(project.shapes()) == 2


class TestLoadImage:
    """Tests for Project.load_image"""

    def test_new_image_resets_everything(self, project):
        """Test that calibration and all sheets are reset"""
        project.calibration.finalize(100.0, 5)
        project.add(make_shape())
        project.create_sheet("B")
        project.add(make_shape())

        project.load_image(ImageState(source="plan.png", width=800, height=600))

        assert not project.calibration.is_ready
        assert len(project.sheets) == 1
        assert project.shapes() == []
        assert project.image.width == 800
