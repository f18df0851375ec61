import numpy as np
import pytest

from blockbreaker3d.mesh import Mesh, load_mesh, parse_obj

QUAD = """
# a unit quad
v 0 0 0
v 1 0 0
v 1 1 0
v 0 1 0
vt 0 0
vt 1 0
vt 1 1
vt 0 1
vn 0 0 1
f 1/1/1 2/2/1 3/3/1 4/4/1
"""


def test_quad_is_fan_triangulated():
    mesh = parse_obj(QUAD)
    assert mesh.vert_count == 4
    assert mesh.ind_count == 6
    assert mesh.indices.tolist() == [0, 1, 2, 0, 2, 3]


def test_uv_v_is_flipped():
    mesh = parse_obj(QUAD)
    assert mesh.vertices[0, 6:8].tolist() == [0.0, 1.0]
    assert mesh.vertices[2, 6:8].tolist() == [1.0, 0.0]


def test_positions_and_normals_are_interleaved():
    mesh = parse_obj(QUAD)
    assert mesh.vertices[1, 0:3].tolist() == [1.0, 0.0, 0.0]
    assert np.allclose(mesh.vertices[:, 3:6], [0.0, 0.0, 1.0])


def test_identical_vertices_are_joined():
    text = "v 0 0 0\nv 1 0 0\nv 1 1 0\nv 0 1 0\nf 1 2 3\nf 1 3 4\n"
    mesh = parse_obj(text)
    assert mesh.vert_count == 4
    assert mesh.indices.tolist() == [0, 1, 2, 0, 2, 3]


def test_smooth_normals_generated_when_missing():
    mesh = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    assert np.allclose(mesh.vertices[:, 3:6], [0.0, 0.0, 1.0])


def test_negative_indices_are_relative():
    relative = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf -3 -2 -1\n")
    absolute = parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\n")
    assert np.array_equal(relative.vertices, absolute.vertices)
    assert np.array_equal(relative.indices, absolute.indices)


def test_only_first_object_is_kept():
    text = "o first\nv 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 3\no second\nv 5 5 5\nf 1 2 4\n"
    mesh = parse_obj(text)
    assert mesh.ind_count == 3
    assert 5.0 not in mesh.vertices[:, 0:3]


def test_buffer_sizes_match_counts():
    mesh = parse_obj(QUAD)
    assert len(mesh.vertex_bytes()) == 32 * mesh.vert_count
    assert len(mesh.index_bytes()) == 2 * mesh.ind_count


def test_buffer_bytes_round_trip():
    mesh = parse_obj(QUAD)
    vertices = np.frombuffer(mesh.vertex_bytes(), dtype="<f4").reshape(-1, 8)
    indices = np.frombuffer(mesh.index_bytes(), dtype="<u2")
    assert np.array_equal(vertices, mesh.vertices)
    assert np.array_equal(indices, mesh.indices)


def test_no_faces_is_an_error():
    with pytest.raises(ValueError):
        parse_obj("v 0 0 0\nv 1 0 0\n")


def test_out_of_range_index_is_an_error():
    with pytest.raises(ValueError):
        parse_obj("v 0 0 0\nv 1 0 0\nv 0 1 0\nf 1 2 9\n")


def test_face_with_two_vertices_is_an_error():
    with pytest.raises(ValueError):
        parse_obj("v 0 0 0\nv 1 0 0\nf 1 2\n")


def test_mesh_rejects_wide_indices():
    with pytest.raises(ValueError):
        Mesh(vertices=np.zeros((1, 8)), indices=[70000])


def test_load_mesh_reads_file(tmp_path):
    path = tmp_path / "quad.obj"
    path.write_text(QUAD, encoding="utf-8")
    loaded = load_mesh(path)
    assert np.array_equal(loaded.vertices, parse_obj(QUAD).vertices)
    assert loaded.ind_count == 6


def test_load_mesh_missing_file(tmp_path):
    with pytest.raises(OSError):
        load_mesh(tmp_path / "missing.obj")