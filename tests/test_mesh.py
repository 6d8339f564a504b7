"""Unit tests for the mesh container and loader."""

import numpy as np
import pytest

QUAD_VERTICES = [[-1.0, -1.0, 2.0], [-1.0, 1.0, 2.0], [1.0, -1.0, 2.0], [1.0, 1.0, 2.0]]
QUAD_FACES = [[0, 1, 2], [1, 3, 2]]
QUAD_COLORS = [[255, 0, 0], [0, 255, 0], [0, 0, 255], [255, 255, 255]]


class TestMesh:
    """Tests for Mesh construction and accessors."""

    def test_counts_and_dtypes(self):
        """Test stored shapes and dtypes."""
        from meshcast.geometry.mesh import Mesh

        mesh = Mesh(QUAD_VERTICES, QUAD_FACES)

        assert mesh.num_vertices == 4
        assert mesh.num_faces == 2
        assert mesh.vertices.dtype == np.float64
        assert mesh.faces.dtype == np.int64
        assert not mesh.has_vertex_colors

    def test_arrays_are_read_only(self):
        """Test that mesh arrays cannot be modified in place."""
        from meshcast.geometry.mesh import Mesh

        mesh = Mesh(QUAD_VERTICES, QUAD_FACES, vertex_colors=QUAD_COLORS)

        with pytest.raises(ValueError):
            mesh.vertices[0, 0] = 10.0
        with pytest.raises(ValueError):
            mesh.vertex_colors[0, 0] = 10.0

    def test_source_arrays_are_copied(self):
        """Test that later changes to the input do not reach the mesh."""
        from meshcast.geometry.mesh import Mesh

        vertices = np.array(QUAD_VERTICES)
        mesh = Mesh(vertices, QUAD_FACES)
        vertices[0, 0] = 100.0

        assert mesh.vertices[0, 0] == -1.0

    def test_attribute_arrays_are_copied(self):
        """Test that colors and normals do not alias caller buffers."""
        from meshcast.geometry.mesh import Mesh

        colors = np.array(QUAD_COLORS, dtype=np.float32)
        normals = np.tile([0.0, 0.0, -1.0], (4, 1))
        faces = np.array(QUAD_FACES, dtype=np.int64)
        mesh = Mesh(QUAD_VERTICES, faces, vertex_colors=colors, vertex_normals=normals)
        colors[0, 0] = 7.0
        normals[0, 2] = 1.0
        faces[0, 0] = 3

        assert mesh.vertex_colors[0, 0] == 255.0
        assert mesh.vertex_normals[0, 2] == -1.0
        assert mesh.faces[0, 0] == 0

    def test_out_of_range_face_index_rejected(self):
        """Test that faces must reference existing vertices."""
        from meshcast.core.errors import ConfigurationError
        from meshcast.geometry.mesh import Mesh

        with pytest.raises(ConfigurationError, match="Face indices"):
            Mesh(QUAD_VERTICES, [[0, 1, 4]])

    def test_color_count_must_match_vertices(self):
        """Test that per-vertex attributes need one row per vertex."""
        from meshcast.core.errors import ConfigurationError
        from meshcast.geometry.mesh import Mesh

        with pytest.raises(ConfigurationError, match="vertex_colors"):
            Mesh(QUAD_VERTICES, QUAD_FACES, vertex_colors=QUAD_COLORS[:3])

    def test_face_normals_follow_right_hand_rule(self):
        """Test that counter-clockwise (x, y) winding gives a -z normal here."""
        from meshcast.geometry.mesh import Mesh

        mesh = Mesh(QUAD_VERTICES, QUAD_FACES)

        np.testing.assert_allclose(mesh.face_normals(), [[0.0, 0.0, -1.0], [0.0, 0.0, -1.0]])

    def test_flatten(self):
        """Test flattened float32 positions and int32 indices."""
        from meshcast.geometry.mesh import Mesh

        vertices, faces = Mesh(QUAD_VERTICES, QUAD_FACES).flatten()

        assert vertices.shape == (12,)
        assert vertices.dtype == np.float32
        assert faces.shape == (6,)
        assert faces.dtype == np.int32
        np.testing.assert_array_equal(faces, [0, 1, 2, 1, 3, 2])
        assert vertices.flags["C_CONTIGUOUS"]

    def test_triangles(self):
        """Test per-face vertex gathering."""
        from meshcast.geometry.mesh import Mesh

        triangles = Mesh(QUAD_VERTICES, QUAD_FACES).triangles

        assert triangles.shape == (2, 3, 3)
        np.testing.assert_array_equal(triangles[1, 1], QUAD_VERTICES[3])


class TestTrimeshInterop:
    """Tests for trimesh conversion and file loading."""

    def test_from_trimesh_keeps_vertex_colors(self):
        """Test that per-vertex colors survive conversion from trimesh."""
        import trimesh

        from meshcast.geometry.mesh import Mesh

        source = trimesh.Trimesh(
            vertices=QUAD_VERTICES,
            faces=QUAD_FACES,
            vertex_colors=np.array(QUAD_COLORS, dtype=np.uint8),
            process=False,
        )

        mesh = Mesh.from_trimesh(source)

        assert mesh.has_vertex_colors
        np.testing.assert_array_equal(mesh.vertex_colors, QUAD_COLORS)
        assert mesh.vertex_normals.shape == (4, 3)

    def test_to_trimesh_keeps_order(self):
        """Test conversion to trimesh without vertex merging."""
        from meshcast.geometry.mesh import Mesh

        mesh = Mesh(QUAD_VERTICES, QUAD_FACES, vertex_colors=QUAD_COLORS)

        converted = mesh.to_trimesh()

        np.testing.assert_array_equal(converted.vertices, QUAD_VERTICES)
        np.testing.assert_array_equal(converted.faces, QUAD_FACES)
        np.testing.assert_array_equal(converted.visual.vertex_colors[:, :3], QUAD_COLORS)

    def test_load_mesh_from_ply(self, tmp_path):
        """Test loading a colored PLY file."""
        from meshcast.geometry.mesh import Mesh, load_mesh

        path = tmp_path / "quad.ply"
        Mesh(QUAD_VERTICES, QUAD_FACES, vertex_colors=QUAD_COLORS).to_trimesh().export(path)

        mesh = load_mesh(path)

        assert mesh.num_vertices == 4
        assert mesh.num_faces == 2
        np.testing.assert_allclose(mesh.vertices, QUAD_VERTICES)
        assert mesh.has_vertex_colors
        np.testing.assert_array_equal(mesh.vertex_colors, QUAD_COLORS)
