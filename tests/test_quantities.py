# ProTakeoff imports
from protakeoff.calibration import Calibration
from protakeoff.errors import InvalidShapeError
from protakeoff.materials import GeometryKind
from protakeoff.project import Project
from protakeoff.quantities import (
    aggregate,
    aggregate_project,
    items_to_dataframe,
    report_rows,
    segment_lengths,
    shape_value,
    sort_for_display,
    to_dataframe,
)
from protakeoff.shapes import Point, Shape

# Third-party imports
import pytest


def wall(material_id="wall-internal", length_px=200.0, y=0.0, hidden=False):
    return Shape(material_id, [Point(0, y), Point(length_px, y)], GeometryKind.LINEAR, hidden=hidden)


def floor(size_px=40.0):
    pts = [Point(0, 0), Point(size_px, 0), Point(size_px, size_px), Point(0, size_px)]
    return Shape("floor-ceramic", pts, GeometryKind.AREA, closed=True)


@pytest.fixture
def project():
    """Project calibrated at 20 px/m"""
    project = Project()
    project.calibration.finalize(100.0, 5)
    return project


class TestShapeValue:
    """Tests for per-shape conversion"""

    def test_linear_meters(self, project):
        """Test that 200 px at 20 px/m is 10 m"""
        assert shape_value(wall(), project.calibration) == pytest.approx(10.0)

    def test_area_square_meters(self, project):
        """Test that a 40 px square at 20 px/m is 4 m²"""
        assert shape_value(floor(), project.calibration) == pytest.approx(4.0)

    def test_point_counts_one(self, project):
        """Test that points are counted, not measured"""
        column = Shape("structure-column", [Point(5, 5)], GeometryKind.POINT)
        assert shape_value(column, project.calibration) == 1.0

    def test_segment_lengths(self, project):
        """Test per-segment labels in meters"""
        shape = Shape("wall-internal", [Point(0, 0), Point(60, 0), Point(60, 80)], GeometryKind.LINEAR)
        assert segment_lengths(shape, project.calibration) == pytest.approx([3.0, 4.0])

    def test_segment_lengths_without_scale(self):
        """Test that no labels are produced before calibration"""
        assert segment_lengths(wall(), Calibration()) == []


class TestAggregate:
    """Tests for aggregate and aggregate_project"""

    def test_no_calibration_yields_empty(self):
        """Test that nothing is aggregated without a scale"""
        project = Project()
        project.add(wall())
        assert aggregate_project(project) == []

    def test_vertical_area(self, project):
        """Test 10 m of wall at 2.8 m height gives 28 m² of vertical area"""
        project.catalog.update_height("wall-internal", 2.8)
        project.add(wall())
        [group] = aggregate_project(project)
        assert group.primary_value == pytest.approx(10.0)
        assert group.vertical_area == pytest.approx(28.0)
        assert group.vertical_area_label == "28,00 m²"

    def test_mismatched_kind_does_not_reach_totals(self, project):
        """Test that a point shape on a linear material is rejected and totals stay in meters"""
        project.catalog.update_height("wall-internal", 2.8)
        project.add(wall())
        with pytest.raises(InvalidShapeError):
            project.add(Shape("wall-internal", [Point(300, 300)], GeometryKind.POINT))
        [group] = aggregate_project(project)
        assert group.count == 1
        assert group.primary_value == pytest.approx(10.0)
        assert group.vertical_area == pytest.approx(28.0)

    def test_vertical_area_absent_without_height(self, project):
        """Test that linear materials without a height have no vertical area"""
        project.add(wall())
        [group] = aggregate_project(project)
        assert group.vertical_area is None
        assert group.vertical_area_label is None

    def test_zero_height_means_absent(self, project):
        """Test that a zero height does not produce a vertical area"""
        project.catalog.update_height("wall-internal", 0)
        project.add(wall())
        assert aggregate_project(project)[0].vertical_area is None

    def test_height_read_at_aggregation_time(self, project):
        """Test that height edits apply to shapes drawn earlier"""
        project.add(wall())
        project.catalog.update_height("wall-internal", 3)
        assert aggregate_project(project)[0].vertical_area == pytest.approx(30.0)

    def test_measure_materials_excluded(self, project):
        """Test that measure-category shapes never appear in totals"""
        project.add(Shape("measure-length", [Point(0, 0), Point(100, 0)], GeometryKind.LINEAR))
        project.add(wall())
        groups = aggregate_project(project)
        assert [g.material.id for g in groups] == ["wall-internal"]

    def test_first_encountered_order(self, project):
        """Test that groups follow the order materials were first drawn"""
        project.add(floor())
        project.add(wall("wall-external"))
        project.add(wall("wall-internal"))
        project.add(floor())
        ids = [g.material.id for g in aggregate_project(project)]
        assert ids == ["floor-ceramic", "wall-external", "wall-internal"]

    def test_counts_and_items(self, project):
        """Test per-material totals and per-shape breakdown"""
        project.add(wall(length_px=200.0))
        project.add(wall(length_px=100.0, y=50))
        [group] = aggregate_project(project)
        assert group.count == 2
        assert group.primary_value == pytest.approx(15.0)
        assert [i.value for i in group.items] == pytest.approx([10.0, 5.0])
        assert group.primary_label == "15,00 m"

    def test_points_count_units(self, project):
        """Test unit counting for point materials"""
        for x in (0, 100, 200):
            project.add(Shape("structure-column", [Point(x, 0)], GeometryKind.POINT))
        [group] = aggregate_project(project)
        assert group.primary_value == 3.0
        assert group.primary_label == "3 un"
        assert group.unit == "un"

    def test_hidden_shapes_still_counted(self, project):
        """Test that visibility does not affect totals"""
        project.add(wall(hidden=True))
        assert aggregate_project(project)[0].count == 1

    def test_active_only_scope(self, project):
        """Test per-sheet vs whole-project totals"""
        project.add(wall())
        project.create_sheet()
        project.add(wall())
        assert aggregate_project(project, active_only=True)[0].count == 1
        assert aggregate_project(project)[0].count == 2

    def test_unknown_material_skipped(self, project):
        """Test that orphaned shapes are skipped"""
        orphan = wall("gone")
        groups = aggregate([orphan, wall()], project.catalog, project.calibration)
        assert [g.material.id for g in groups] == ["wall-internal"]


class TestReporting:
    """Tests for report rows, ordering and data frames"""

    def test_report_rows(self, project):
        """Test the rows passed to the report renderer"""
        project.catalog.update_height("wall-internal", 2.8)
        project.add(wall())
        project.add(floor())
        rows = report_rows(project)
        assert [r.material_name for r in rows] == ["Parede Interna", project.catalog.find("floor-ceramic").name]
        assert rows[0].category_label == "Paredes"
        assert rows[0].primary_value == "10,00 m"
        assert rows[0].vertical_area == "28,00 m²"
        assert rows[1].vertical_area is None

    def test_sort_for_display(self, project):
        """Test that groups are ordered by category for display"""
        project.add(floor())
        project.add(wall())
        groups = sort_for_display(aggregate_project(project))
        assert [g.category_label for g in groups] == ["Paredes", "Pisos"]

    def test_to_dataframe(self, project):
        """Test the summary table"""
        project.add(wall())
        df = to_dataframe(aggregate_project(project))
        assert list(df["material"]) == ["Parede Interna"]
        assert df.loc[0, "quantity"] == pytest.approx(10.0)
        assert df.loc[0, "unit"] == "m"

    def test_items_to_dataframe(self, project):
        """Test the per-shape table records the sheet name"""
        project.add(wall())
        sheet = project.create_sheet("Cobertura")
        project.add(wall())
        df = items_to_dataframe(project, aggregate_project(project))
        assert list(df["sheet"]) == [project.sheets[0].name, sheet.name]
        assert list(df["item"]) == [1, 2]
