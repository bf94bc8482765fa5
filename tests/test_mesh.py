import logging

import pytest
import torch

from qtzcodec import Mesh, StripTopology
from qtzcodec.array.quant import precision_step
from qtzcodec.mesh import (
    ArrayCodecConfig,
    MeshCodecConfig,
    MeshCodecInterface,
    MeshDecoder,
    MeshDeserializer,
    MeshEncoder,
    MeshSerializer,
)
from qtzcodec.mesh.serialize import pack_topology, unpack_topology

from .utils import random_unit_vectors, smooth_strip

STRIPS = [list(range(12)), list(range(12, 24))]


def make_mesh(seed=0, strips=STRIPS):
    vertices = torch.cat([smooth_strip(12, seed=seed), smooth_strip(12, seed=seed + 1)])
    uvs = torch.cat([smooth_strip(12, dim=2, seed=seed + 2), smooth_strip(12, dim=2, seed=seed + 3)])
    normals = random_unit_vectors(24, seed=seed).to(torch.float32)
    return Mesh(vertices=vertices, normals=normals, uvs=uvs, topology=strips)


def assert_meshes_equal(a, b):
    assert torch.equal(a.vertices, b.vertices)
    for name in ("normals", "uvs"):
        x, y = getattr(a, name), getattr(b, name)
        assert (x is None) == (y is None)
        if x is not None:
            assert torch.equal(x, y)
    assert a.topology == b.topology


def test_interface_round_trip():
    mesh = make_mesh()
    interface = MeshCodecInterface()

    payload = interface.pack_mesh(mesh)
    restored = interface.unpack_mesh(payload)

    # nine predicted elements per strip, each adding at most half a step
    vertex_step = precision_step(payload.vertices.extent, 2)
    assert ((restored.vertices - mesh.vertices).abs() <= 9 * vertex_step / 2 + 1e-5).all()
    uv_step = precision_step(payload.uvs.extent, 2)
    assert ((restored.uvs - mesh.uvs).abs() <= 9 * uv_step / 2 + 1e-5).all()
    assert ((restored.normals - mesh.normals).abs() < 0.05).all()
    assert restored.topology == mesh.topology


def test_default_config_applies_per_kind():
    payload = MeshCodecInterface().pack_mesh(make_mesh())

    assert payload.vertices.width == 2
    assert payload.vertices.raw.shape == (6, 3)
    assert payload.normals.width == 1
    assert payload.normals.raw.shape == (0, 2)
    assert payload.uvs.raw.shape == (6, 2)


def test_custom_config():
    config = MeshCodecConfig(vertex=ArrayCodecConfig(width=4, quantization=False, prediction=False))
    payload = MeshCodecInterface(config).pack_mesh(make_mesh())

    assert payload.vertices.width == 4
    assert payload.vertices.raw.shape == (24, 3)


def test_mesh_without_strips_drops_prediction(caplog):
    mesh = make_mesh(strips=None)
    with caplog.at_level(logging.INFO, logger="qtzcodec"):
        payload = MeshCodecInterface().pack_mesh(mesh)

    assert payload.topology is None
    assert payload.vertices.raw.shape == (0, 3)
    assert "without prediction" in caplog.text
    assert MeshCodecInterface().unpack_mesh(payload).vertices.shape == (24, 3)


def test_mesh_validation():
    vertices = torch.zeros((4, 3))
    with pytest.raises(ValueError):
        Mesh(vertices=vertices, normals=torch.zeros((3, 3)))
    with pytest.raises(ValueError):
        Mesh(vertices=vertices, uvs=torch.zeros((4, 3)))
    assert isinstance(Mesh(vertices=vertices, topology=[[0, 1, 2, 3]]).topology, StripTopology)


def test_topology_bytes():
    topology = StripTopology.from_strips([[0, 1, 2, 3], [5, 4, 3]])
    data = pack_topology(topology)

    assert len(data) == 4 * (1 + 3 + 7)
    assert unpack_topology(data) == topology
    assert unpack_topology(pack_topology(StripTopology.from_strips([]))) == StripTopology.from_strips([])
    with pytest.raises(ValueError):
        unpack_topology(data[:-1])
    with pytest.raises(ValueError):
        unpack_topology(data[:2])


@pytest.mark.parametrize("zstd_level", [None, 1, 7])
def test_stream_round_trip(zstd_level):
    interface = MeshCodecInterface()
    meshes = [make_mesh(seed=0), make_mesh(seed=10), Mesh(vertices=make_mesh(seed=20).vertices)]
    expected = [interface.unpack_mesh(interface.pack_mesh(mesh)) for mesh in meshes]

    encoder = MeshEncoder(MeshSerializer(zstd_level=zstd_level))
    data = b"".join(encoder.encode_stream(iter(meshes)))
    # feed the decoder in small uneven chunks
    chunks = (data[i:i + 7] for i in range(0, len(data), 7))
    decoder = MeshDecoder(MeshDeserializer(compressed=zstd_level is not None))
    decoded = list(decoder.decode_stream(chunks))

    assert len(decoded) == len(meshes)
    for got, want in zip(decoded, expected):
        assert_meshes_equal(got, want)


def test_payload_device_transfer():
    mesh = make_mesh()
    encoder = MeshEncoder(MeshSerializer(), payload_device="cpu")
    decoder = MeshDecoder(MeshDeserializer(), payload_device="cpu", device="cpu")

    decoded = list(decoder.decode_stream(encoder.encode_stream(iter([mesh]))))

    assert len(decoded) == 1
    assert decoded[0].vertices.device.type == "cpu"


def test_truncated_stream():
    data = b"".join(MeshEncoder(MeshSerializer(zstd_level=None)).encode_stream(iter([make_mesh()])))
    deserializer = MeshDeserializer(compressed=False)

    assert list(deserializer.deserialize_frame(data[:-3])) == []
    with pytest.raises(ValueError):
        list(deserializer.flush())


def test_frame_without_vertices():
    deserializer = MeshDeserializer(compressed=False)
    with pytest.raises(ValueError):
        list(deserializer.deserialize_frame(bytes(16)))
