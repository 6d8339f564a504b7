"""Shared pytest setup for the meshcast suite.

Camera ray tables and pixel shading run in Taichi kernels, so the Taichi
runtime has to exist before the first table read or render.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def taichi_runtime():
    """Start a CPU Taichi runtime once for all tests.

    Re-initializing Taichi between tests invalidates compiled kernels, so the
    runtime lives for the whole session.
    """
    ti.init(arch=ti.cpu, log_level=ti.WARN)
    yield
