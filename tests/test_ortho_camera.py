"""Unit tests for the orthographic camera model."""

import numpy as np
import pytest


class TestOrthoProjection:
    """Tests for the identity projection."""

    def test_project_is_identity(self):
        """Test that projection passes points through unchanged."""
        from meshcast.camera.ortho import OrthoCamera

        camera = OrthoCamera(8, 6)
        points = np.array([[1.5, -2.0, 3.0], [0.0, 0.0, -1.0]])

        np.testing.assert_array_equal(camera.project(points), points)

    def test_unproject_is_identity(self):
        """Test unproject with embedded and separate depth."""
        from meshcast.camera.ortho import OrthoCamera

        camera = OrthoCamera(8, 6)

        np.testing.assert_array_equal(camera.unproject([1.0, 2.0, 5.0]), [1.0, 2.0, 5.0])
        np.testing.assert_array_equal(camera.unproject([[1.0, 2.0]], depth=[7.0]), [[1.0, 2.0, 7.0]])


class TestOrthoRays:
    """Tests for parallel ray generation."""

    def test_camera_space_origin_is_offset_from_image_center(self):
        """Test origin (x - W/2, y - H/2, 0) in camera space."""
        from meshcast.camera.ortho import OrthoCamera

        camera = OrthoCamera(4, 2)

        np.testing.assert_allclose(camera.ray_origin_at(0, 0, "camera"), [-2.0, -1.0, 0.0])
        np.testing.assert_allclose(camera.ray_origin_at(3, 1, "camera"), [1.0, 0.0, 0.0])

    def test_odd_size_keeps_fractional_half_extent(self):
        """Test that odd image sizes center on a half pixel."""
        from meshcast.camera.ortho import OrthoCamera

        camera = OrthoCamera(3, 5)

        np.testing.assert_allclose(camera.ray_origin_at(0, 0, "camera"), [-1.5, -2.5, 0.0])

    def test_world_origin_follows_pose(self):
        """Test world origins are camera origins moved by the c2w transform."""
        from meshcast.camera.ortho import OrthoCamera
        from meshcast.camera.pose import make_pose

        camera = OrthoCamera(4, 2, make_pose(translation=(1.0, 2.0, 3.0)))

        np.testing.assert_allclose(camera.ray_origin_at(0, 0, "world"), [-1.0, 1.0, 3.0])

    def test_all_directions_equal_camera_forward_axis(self):
        """Test every ray shares the camera z axis."""
        from meshcast.camera.ortho import OrthoCamera
        from meshcast.camera.pose import look_at

        c2w = look_at(eye=(0.0, 5.0, 0.0), target=(0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0))
        camera = OrthoCamera(5, 3, c2w)

        camera_dirs = camera.ray_directions("camera").reshape(-1, 3)
        world_dirs = camera.ray_directions("world").reshape(-1, 3)

        np.testing.assert_allclose(camera_dirs, np.tile([0.0, 0.0, 1.0], (15, 1)))
        np.testing.assert_allclose(world_dirs, np.tile([0.0, -1.0, 0.0], (15, 1)), atol=1e-6)

    def test_table_lookup_matches_formula(self):
        """Test table/formula agreement for every pixel after mutations."""
        from meshcast.camera.ortho import OrthoCamera
        from meshcast.camera.pose import look_at

        camera = OrthoCamera(7, 4)
        camera.set_c2w(look_at(eye=(3.0, -1.0, 2.0), target=(0.0, 1.0, 0.0)))
        camera.set_size(6, 5)

        xs, ys = np.meshgrid(np.arange(6), np.arange(5))
        for frame in ("camera", "world"):
            np.testing.assert_allclose(
                camera.ray_origins(frame), camera.ray_origin(xs, ys, frame), atol=1e-5
            )
            np.testing.assert_allclose(
                camera.ray_directions(frame), camera.ray_direction(xs, ys, frame), atol=1e-6
            )

    def test_set_w2c_sets_inverse_pose(self):
        """Test that set_w2c stores its inverse as c2w."""
        from meshcast.camera.ortho import OrthoCamera
        from meshcast.camera.pose import make_pose

        camera = OrthoCamera(2, 2)
        camera.set_w2c(make_pose(translation=(0.0, 0.0, 4.0)))

        np.testing.assert_allclose(camera.position, [0.0, 0.0, -4.0])

    def test_non_rigid_pose_rejected(self):
        """Test that scaling matrices are not accepted as poses."""
        from meshcast.camera.ortho import OrthoCamera
        from meshcast.core.errors import ConfigurationError

        camera = OrthoCamera(2, 2)
        with pytest.raises(ConfigurationError):
            camera.set_c2w(np.diag([2.0, 2.0, 2.0, 1.0]))
