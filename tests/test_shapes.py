"""Unit tests for host-side shape descriptors."""

import pytest


class TestShapeValidation:
    """Construction-time validation."""

    def test_sphere_requires_positive_radius(self):
        from lumen.geometry.shapes import SphereShape

        with pytest.raises(ValueError):
            SphereShape((0.0, 0.0, 0.0), 0.0)
        with pytest.raises(ValueError):
            SphereShape((0.0, 0.0, 0.0), -1.0)

    def test_sphere_center_must_be_3d(self):
        from lumen.geometry.shapes import SphereShape

        with pytest.raises(ValueError):
            SphereShape((0.0, 0.0), 1.0)

    def test_plane_normal_is_normalized(self):
        from lumen.geometry.shapes import PlaneShape

        plane = PlaneShape((0.0, 0.0, 0.0), (0.0, 0.0, 5.0))
        assert plane.normal == pytest.approx((0.0, 0.0, 1.0))

    def test_plane_zero_normal_rejected(self):
        from lumen.geometry.shapes import PlaneShape

        with pytest.raises(ValueError):
            PlaneShape((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_triangle_normal(self):
        from lumen.geometry.shapes import TriangleShape

        triangle = TriangleShape((0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0))
        assert triangle.normal == pytest.approx((0.0, 0.0, -1.0))

    def test_degenerate_triangle_rejected(self):
        from lumen.geometry.shapes import TriangleShape

        with pytest.raises(ValueError):
            TriangleShape((0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0))

    def test_composite_rejects_non_shapes(self):
        from lumen.geometry.shapes import CompositeShape

        with pytest.raises(TypeError):
            CompositeShape(("not a shape",))

    def test_kinds(self):
        from lumen.geometry.shapes import CompositeShape, PlaneShape, ShapeKind, SphereShape, TriangleShape

        assert SphereShape((0, 0, 0), 1.0).kind == ShapeKind.SPHERE
        assert PlaneShape((0, 0, 0), (0, 1, 0)).kind == ShapeKind.PLANE
        assert TriangleShape((0, 0, 0), (1, 0, 0), (0, 1, 0)).kind == ShapeKind.TRIANGLE
        assert CompositeShape(()).kind == ShapeKind.COMPOSITE


class TestCompositeLeaves:
    """Flattening of nested composites."""

    def test_nested_leaves_in_depth_first_order(self):
        from lumen.geometry.shapes import CompositeShape, PlaneShape, SphereShape

        a = SphereShape((0.0, 0.0, 0.0), 1.0)
        b = SphereShape((5.0, 0.0, 0.0), 1.0)
        c = PlaneShape((0.0, -1.0, 0.0), (0.0, 1.0, 0.0))
        composite = CompositeShape((a, CompositeShape((b, CompositeShape(()))), c))

        assert list(composite.leaves()) == [a, b, c]

    def test_children_become_tuple(self):
        from lumen.geometry.shapes import CompositeShape, SphereShape

        composite = CompositeShape([SphereShape((0.0, 0.0, 0.0), 1.0)])
        assert isinstance(composite.children, tuple)
