"""Unit tests for pose helpers and TUM trajectory IO."""

import math

import numpy as np
import pytest


class TestPoseHelpers:
    """Tests for rigid transform construction and validation."""

    def test_make_pose_defaults_to_identity(self):
        """Test make_pose without arguments."""
        from meshcast.camera.pose import make_pose

        np.testing.assert_array_equal(make_pose(), np.eye(4))

    def test_as_pose_accepts_3x4(self):
        """Test that [R | t] blocks gain a homogeneous row."""
        from meshcast.camera.pose import as_pose

        block = np.hstack([np.eye(3), [[1.0], [2.0], [3.0]]])
        pose = as_pose(block)

        assert pose.shape == (4, 4)
        np.testing.assert_array_equal(pose[3], [0.0, 0.0, 0.0, 1.0])
        np.testing.assert_array_equal(pose[:3, 3], [1.0, 2.0, 3.0])

    @pytest.mark.parametrize(
        "matrix",
        [
            np.eye(3),
            np.diag([1.0, 1.0, -1.0, 1.0]),
            np.full((4, 4), np.nan),
            np.vstack([np.eye(4)[:3], [1.0, 0.0, 0.0, 1.0]]),
        ],
        ids=["wrong-shape", "reflection", "non-finite", "bad-bottom-row"],
    )
    def test_as_pose_rejects_invalid(self, matrix):
        """Test the validation failures of as_pose."""
        from meshcast.camera.pose import as_pose
        from meshcast.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            as_pose(matrix)

    def test_rigid_inverse(self):
        """Test that rigid_inverse undoes a rotation and translation."""
        from meshcast.camera.pose import look_at, rigid_inverse

        pose = look_at(eye=(1.0, -2.0, 3.0), target=(0.5, 0.5, 0.5))

        np.testing.assert_allclose(rigid_inverse(pose) @ pose, np.eye(4), atol=1e-12)

    def test_look_at_default_up_is_identity_for_forward_view(self):
        """Test that looking down +z with -y up gives identity rotation."""
        from meshcast.camera.pose import look_at

        pose = look_at(eye=(0.0, 0.0, -3.0), target=(0.0, 0.0, 0.0))

        np.testing.assert_allclose(pose[:3, :3], np.eye(3), atol=1e-12)
        np.testing.assert_allclose(pose[:3, 3], [0.0, 0.0, -3.0])

    def test_look_at_points_z_axis_at_target(self):
        """Test that the camera forward axis points from eye to target."""
        from meshcast.camera.pose import look_at

        pose = look_at(eye=(2.0, 0.0, 0.0), target=(0.0, 0.0, 0.0))

        np.testing.assert_allclose(pose[:3, 2], [-1.0, 0.0, 0.0], atol=1e-12)

    def test_look_at_degenerate_inputs(self):
        """Test coincident eye/target and up parallel to the view direction."""
        from meshcast.camera.pose import look_at
        from meshcast.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError, match="coincide"):
            look_at(eye=(1.0, 1.0, 1.0), target=(1.0, 1.0, 1.0))
        with pytest.raises(ConfigurationError, match="parallel"):
            look_at(eye=(0.0, 0.0, 0.0), target=(0.0, 1.0, 0.0))


class TestQuaternions:
    """Tests for quaternion conversion."""

    def test_identity_quaternion(self):
        """Test (0, 0, 0, 1) maps to identity and back."""
        from meshcast.camera.pose import quaternion_to_rotation, rotation_to_quaternion

        np.testing.assert_allclose(quaternion_to_rotation([0.0, 0.0, 0.0, 1.0]), np.eye(3))
        np.testing.assert_allclose(rotation_to_quaternion(np.eye(3)), [0.0, 0.0, 0.0, 1.0])

    def test_quarter_turn_about_z(self):
        """Test a 90 degree rotation about z."""
        from meshcast.camera.pose import quaternion_to_rotation

        s = math.sqrt(0.5)
        rotation = quaternion_to_rotation([0.0, 0.0, s, s])

        np.testing.assert_allclose(rotation @ [1.0, 0.0, 0.0], [0.0, 1.0, 0.0], atol=1e-12)

    def test_unnormalized_quaternion_is_normalized(self):
        """Test that scaling a quaternion does not change its rotation."""
        from meshcast.camera.pose import quaternion_to_rotation

        np.testing.assert_allclose(
            quaternion_to_rotation([0.0, 0.0, 2.0, 2.0]),
            quaternion_to_rotation([0.0, 0.0, 1.0, 1.0]),
        )

    def test_zero_quaternion_rejected(self):
        """Test that a zero quaternion is a configuration error."""
        from meshcast.camera.pose import quaternion_to_rotation
        from meshcast.core.errors import ConfigurationError

        with pytest.raises(ConfigurationError):
            quaternion_to_rotation([0.0, 0.0, 0.0, 0.0])

    def test_random_rotations_survive_conversion(self):
        """Test quaternion -> matrix -> quaternion for all diagonal branches."""
        from meshcast.camera.pose import quaternion_to_rotation, rotation_to_quaternion

        rng = np.random.default_rng(7)
        quaternions = rng.normal(size=(100, 4))
        # Rotations of ~180 degrees about each axis hit the non-trace branches
        quaternions[:3] = [[1.0, 0.01, 0.0, 0.05], [0.0, 1.0, 0.01, 0.05], [0.01, 0.0, 1.0, 0.05]]

        for q in quaternions:
            q = q / np.linalg.norm(q)
            if q[3] < 0.0:
                q = -q
            recovered = rotation_to_quaternion(quaternion_to_rotation(q))
            np.testing.assert_allclose(recovered, q, atol=1e-9)


class TestTrajectory:
    """Tests for TUM trajectory reading and writing."""

    def test_write_then_load(self, tmp_path):
        """Test that written poses load back unchanged."""
        from meshcast.camera.pose import look_at
        from meshcast.camera.trajectory import load_tum, write_tum

        poses = [
            look_at(eye=(0.0, 0.0, -3.0), target=(0.0, 0.0, 0.0)),
            look_at(eye=(2.0, 1.0, -2.0), target=(0.0, 0.5, 0.0)),
            look_at(eye=(-1.0, -4.0, 0.5), target=(0.0, 0.0, 0.0), up=(0.0, 0.0, 1.0)),
        ]
        path = tmp_path / "poses.txt"
        write_tum(poses, path)

        loaded = load_tum(path)

        assert len(loaded) == 3
        for expected, actual in zip(poses, loaded):
            np.testing.assert_allclose(actual, expected, atol=1e-9)

    def test_writer_emits_frame_index(self, tmp_path):
        """Test the timestamp column holds 0, 1, 2, ..."""
        from meshcast.camera.pose import make_pose
        from meshcast.camera.trajectory import load_tum_indexed, write_tum

        path = tmp_path / "poses.txt"
        write_tum([make_pose(translation=(0.0, 0.0, float(i))) for i in range(4)], path)

        indexed = load_tum_indexed(path)

        assert [index for index, _ in indexed] == [0, 1, 2, 3]
        assert path.read_text().splitlines()[2].split()[0] == "2"
        np.testing.assert_allclose(indexed[3][1][:3, 3], [0.0, 0.0, 3.0])

    def test_comments_and_blank_lines_skipped(self, tmp_path):
        """Test that '#' lines and blank lines are ignored."""
        from meshcast.camera.trajectory import load_tum_indexed

        path = tmp_path / "poses.txt"
        path.write_text(
            "# timestamp tx ty tz qx qy qz qw\n"
            "\n"
            "17 1 2 3 0 0 0 1\n"
            "   \n"
            "42.9 0 0 0 0 0 0 1\n"
        )

        indexed = load_tum_indexed(path)

        assert [index for index, _ in indexed] == [17, 42]
        np.testing.assert_allclose(indexed[0][1][:3, 3], [1.0, 2.0, 3.0])

    def test_wrong_field_count_reports_line(self, tmp_path):
        """Test malformed lines raise with the file position."""
        from meshcast.camera.trajectory import load_tum
        from meshcast.core.errors import ConfigurationError

        path = tmp_path / "poses.txt"
        path.write_text("0 0 0 0 0 0 0 1\n1 0 0 0\n")

        with pytest.raises(ConfigurationError, match=":2:"):
            load_tum(path)

    def test_non_numeric_value_rejected(self, tmp_path):
        """Test that unparsable numbers are configuration errors."""
        from meshcast.camera.trajectory import load_tum
        from meshcast.core.errors import ConfigurationError

        path = tmp_path / "poses.txt"
        path.write_text("0 x 0 0 0 0 0 1\n")

        with pytest.raises(ConfigurationError):
            load_tum(path)

    def test_empty_trajectory(self, tmp_path):
        """Test writing and reading zero poses."""
        from meshcast.camera.trajectory import load_tum, write_tum

        path = tmp_path / "empty.txt"
        write_tum([], path)

        assert path.read_text() == ""
        assert load_tum(path) == []
