import numpy as np
import cv2
import pytest

from polar2d.core import Geometry, ThresholdRange


@pytest.fixture
def rng():
    return np.random.default_rng(0)

@pytest.fixture
def unit_geometry():
    return Geometry(1.0, 1.0)

@pytest.fixture
def full_range():
    return ThresholdRange(0.0, 255.0)

@pytest.fixture
def bone_slice(rng):
    # 64x64 synthetic "cortex": bright ring with noisy grey levels
    img = np.zeros((64, 64), np.uint8)
    cv2.circle(img, (30, 34), 20, 200, -1)
    cv2.circle(img, (30, 34), 12, 0, -1)
    cv2.rectangle(img, (45, 10), (55, 18), 120, -1)
    noise = rng.normal(0, 8, img.shape).astype(np.int16)
    img = np.where(img > 0, np.clip(img.astype(np.int16) + noise, 1, 255), 0).astype(np.uint8)
    return img

@pytest.fixture
def small_stack(bone_slice):
    # slice 2 is empty (nothing above threshold)
    blank = np.zeros_like(bone_slice)
    shifted = np.roll(bone_slice, 5, axis=1)
    return np.stack([bone_slice, blank, shifted])
