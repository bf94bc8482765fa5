import os

import pytest
import torch

from qtzcodec import Mesh
from qtzcodec.io import BytesReader, BytesWriter, MeshReader, MeshSequence, MeshWriter, load_mesh, save_mesh

from .utils import random_unit_vectors


def make_mesh(count=8, seed=0):
    generator = torch.Generator().manual_seed(seed)
    return Mesh(
        vertices=torch.rand((count, 3), generator=generator),
        normals=random_unit_vectors(count, seed=seed).to(torch.float32),
        uvs=torch.rand((count, 2), generator=generator),
        topology=[list(range(count))],
    )


def test_save_and_load(tmp_path):
    mesh = make_mesh()
    path = str(tmp_path / "mesh.npz")

    save_mesh(mesh, path)
    loaded = load_mesh(path)

    assert os.path.exists(path)
    assert torch.equal(loaded.vertices, mesh.vertices)
    assert torch.equal(loaded.normals, mesh.normals)
    assert torch.equal(loaded.uvs, mesh.uvs)
    assert loaded.topology == mesh.topology


def test_optional_arrays_stay_absent(tmp_path):
    path = str(tmp_path / "bare.npz")
    save_mesh(Mesh(vertices=torch.zeros((3, 3))), path)

    loaded = load_mesh(path)

    assert loaded.normals is None
    assert loaded.uvs is None
    assert loaded.topology is None


def test_mesh_sequence(tmp_path):
    meshes = [make_mesh(seed=i) for i in range(3)]
    first = str(tmp_path / "out" / "mesh_0000.npz")
    subsequent = str(tmp_path / "out" / "mesh_{:04d}.npz")

    MeshWriter(first, subsequent, 1).write(iter(meshes))
    loaded = list(MeshReader(first, subsequent, 1).read())

    assert len(loaded) == 3
    for got, want in zip(loaded, meshes):
        assert torch.equal(got.vertices, want.vertices)


def test_writer_refuses_to_overwrite(tmp_path):
    path = str(tmp_path / "mesh.npz")
    save_mesh(make_mesh(), path)
    with pytest.raises(FileExistsError):
        MeshWriter(path, "", 1).write(iter([make_mesh()]))


def test_writer_needs_format_for_several_meshes(tmp_path):
    with pytest.raises(ValueError):
        MeshWriter(str(tmp_path / "mesh.npz"), "", 1).write(iter([make_mesh(), make_mesh()]))


def test_reader_missing_first_mesh(tmp_path):
    with pytest.raises(FileNotFoundError):
        list(MeshReader(str(tmp_path / "missing.npz"), "", 1).read())


def test_bytes_round_trip(tmp_path):
    path = str(tmp_path / "sub" / "stream.qtz")
    chunks = [b"abc", b"", b"defgh", b"i"]

    written = BytesWriter(path).write(iter(chunks))
    read = list(BytesReader(path, chunk_size=4).read())

    assert written == 9
    assert read == [b"abcd", b"efgh", b"i"]


def test_bytes_writer_leaves_nothing_on_failure(tmp_path):
    path = str(tmp_path / "stream.qtz")

    def chunks():
        yield b"abc"
        raise RuntimeError("encoder failed")

    with pytest.raises(RuntimeError):
        BytesWriter(path).write(chunks())
    assert os.listdir(tmp_path) == []


def test_bytes_writer_refuses_to_overwrite(tmp_path):
    path = tmp_path / "stream.qtz"
    path.write_bytes(b"x")
    with pytest.raises(FileExistsError):
        BytesWriter(str(path)).write(iter([b"y"]))


def test_bytes_reader_validation(tmp_path):
    with pytest.raises(ValueError):
        BytesReader(str(tmp_path / "x"), chunk_size=0)
    with pytest.raises(FileNotFoundError):
        list(BytesReader(str(tmp_path / "missing")).read())


def test_sequence_paths():
    sequence = MeshSequence("a/first.npz", "a/mesh_{:02d}.npz", start_index=5)
    assert [sequence.path(i) for i in range(3)] == ["a/first.npz", "a/mesh_05.npz", "a/mesh_06.npz"]
    assert MeshSequence("only.npz").path(1) is None


def test_writer_reports_count(tmp_path):
    writer = MeshWriter(str(tmp_path / "m0.npz"), str(tmp_path / "m{}.npz"), 1)
    assert writer.write(iter([make_mesh(), make_mesh(seed=1)])) == 2
    assert sorted(os.listdir(tmp_path)) == ["m0.npz", "m1.npz"]
