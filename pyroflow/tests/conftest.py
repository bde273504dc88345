import pytest
import taichi as ti

from pyroflow.core import GridGeometry, FieldStore

@pytest.fixture(scope="session", autouse=True)
def taichi_runtime():
    """All kernels run on the CPU backend in tests"""
    ti.init(arch=ti.cpu, default_fp=ti.f32)
    yield

@pytest.fixture
def geometry():
    return GridGeometry.from_resolution(16)

@pytest.fixture
def store(geometry):
    field_store = FieldStore(geometry)
    yield field_store
    field_store.release()
