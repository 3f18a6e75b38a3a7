import math
import numpy as np
import pytest
from polar2d.core import Geometry, ThresholdRange, accumulate_slice

def test_golden_4x4_without_self_term(unit_geometry, full_range):
    img = np.full((4, 4), 10.0)
    acc = accumulate_slice(img, full_range, unit_geometry, 0.0, 1.0, include_self_term=False)
    assert acc.n_pixels == 16 and acc.area == 16.0
    assert (acc.xc_geom, acc.yc_geom) == (2.0, 2.0)
    assert (acc.xc_dens, acc.yc_dens) == (2.0, 2.0)
    assert acc.pmoa == pytest.approx(40.0)
    assert acc.pmoi == pytest.approx(40.0)
    assert acc.moa.ixx == pytest.approx(20.0) and acc.moa.iyy == pytest.approx(20.0)
    assert acc.moa.ixy == pytest.approx(0.0)
    assert acc.mean_density == 1.0 and not acc.clamped

def test_golden_4x4_with_self_term(unit_geometry, full_range):
    img = np.full((4, 4), 10.0)
    acc = accumulate_slice(img, full_range, unit_geometry, 0.0, 1.0, include_self_term=True)
    assert acc.pmoa == pytest.approx(40.0 + 16.0 / 6.0)

def test_anisotropic_pixels(full_range):
    img = np.ones((4, 4))
    geo = Geometry(2.0, 0.5)
    acc = accumulate_slice(img, full_range, geo, 0.0, 1.0, include_self_term=False)
    assert acc.area == pytest.approx(16.0)
    assert (acc.xc_geom, acc.yc_geom) == pytest.approx((4.0, 1.0))
    assert acc.moa.iyy == pytest.approx(80.0)
    assert acc.moa.ixx == pytest.approx(5.0)
    with_self = accumulate_slice(img, full_range, geo, 0.0, 1.0, include_self_term=True)
    assert with_self.moa.ixx == pytest.approx(5.0 + 16 * 0.25 / 12)
    assert with_self.moa.iyy == pytest.approx(80.0 + 16 * 4.0 / 12)

def test_trace_equals_sum_of_polar_contributions(bone_slice):
    geo = Geometry(0.012, 0.015)
    thr = ThresholdRange(1, 255)
    for self_term in (False, True):
        acc = accumulate_slice(bone_slice, thr, geo, 3.5, -40.0, include_self_term=self_term, want_maps=True)
        assert acc.pmoa_map.shape == bone_slice.shape and acc.pmoa_map.dtype == np.float32
        assert acc.pmoa == pytest.approx(acc.moa.ixx + acc.moa.iyy)
        assert float(acc.pmoa_map.sum(dtype=np.float64)) == pytest.approx(acc.pmoa, rel=1e-5)
        assert float(acc.pmoi_map.sum(dtype=np.float64)) == pytest.approx(acc.pmoi, rel=1e-5)
        # nothing outside the threshold contributes
        assert not acc.pmoa_map[bone_slice == 0].any()

def test_brute_force_polar_sum(bone_slice):
    geo = Geometry(0.5, 0.25)
    thr = ThresholdRange(100, 255)
    m, c = 2.0, -10.0
    acc = accumulate_slice(bone_slice, thr, geo, m, c, include_self_term=True)
    ys, xs = np.nonzero((bone_slice >= 100) & (bone_slice <= 255))
    X = (xs + 0.5) * 0.5
    Y = (ys + 0.5) * 0.25
    dA = 0.125
    self_term = dA * (0.25 ** 2 + 0.5 ** 2) / 12
    pmoa = np.sum(((X - X.mean()) ** 2 + (Y - Y.mean()) ** 2) * dA + self_term)
    w = np.maximum(m * bone_slice[ys, xs].astype(float) + c, 0)
    xr, yr = np.sum(X * w) / w.sum(), np.sum(Y * w) / w.sum()
    pmoi = np.sum(w * (((X - xr) ** 2 + (Y - yr) ** 2) * dA + self_term))
    assert acc.pmoa == pytest.approx(pmoa, rel=1e-10)
    assert acc.pmoi == pytest.approx(pmoi, rel=1e-10)
    assert (acc.xc_dens, acc.yc_dens) == pytest.approx((xr, yr))

def test_uniform_density_makes_pmoi_equal_pmoa(bone_slice):
    acc = accumulate_slice(bone_slice, ThresholdRange(1, 255), Geometry(0.01, 0.01), 0.0, 1.0)
    assert acc.pmoi == pytest.approx(acc.pmoa, rel=1e-12)
    assert (acc.xc_dens, acc.yc_dens) == pytest.approx((acc.xc_geom, acc.yc_geom))

def test_density_weighted_centroid(unit_geometry):
    img = np.array([[1.0, 3.0]])
    acc = accumulate_slice(img, ThresholdRange(0, 10), unit_geometry, 1.0, 0.0, include_self_term=False)
    assert acc.xc_geom == pytest.approx(1.0)
    assert acc.xc_dens == pytest.approx(1.25)
    assert acc.mean_density == pytest.approx(2.0)

def test_threshold_is_inclusive(unit_geometry):
    img = np.array([[9.0, 10.0, 11.0, 20.0, 21.0]])
    acc = accumulate_slice(img, ThresholdRange(10, 20), unit_geometry, 0.0, 1.0)
    assert acc.n_pixels == 3

def test_empty_slice(unit_geometry):
    img = np.zeros((8, 8))
    acc = accumulate_slice(img, ThresholdRange(1, 255), unit_geometry, 1.0, 0.0, want_maps=True)
    assert acc.n_pixels == 0 and acc.area == 0.0
    assert math.isnan(acc.xc_geom) and math.isnan(acc.yc_dens)
    assert math.isnan(acc.mean_density)
    assert acc.pmoa == 0.0 and acc.pmoi == 0.0
    assert acc.pmoa_map.shape == (8, 8) and not acc.pmoa_map.any() and not acc.pmoi_map.any()

def test_negative_densities_are_clamped_for_weights_only(bone_slice):
    thr = ThresholdRange(1, 255)
    geo = Geometry(1.0, 1.0)
    acc = accumulate_slice(bone_slice, thr, geo, 1.0, -150.0)
    assert acc.clamped
    vals = bone_slice[bone_slice >= 1].astype(float)
    # mean uses unclamped densities
    assert acc.mean_density == pytest.approx(np.mean(vals - 150.0))
    ref = accumulate_slice(bone_slice, thr, geo, 1.0, 0.0)
    assert not ref.clamped

def test_all_clamped_falls_back_to_geometric_centroid(bone_slice):
    acc = accumulate_slice(bone_slice, ThresholdRange(1, 255), Geometry(1.0, 1.0), -1.0, 0.0, want_maps=True)
    assert acc.clamped
    assert (acc.xc_dens, acc.yc_dens) == (acc.xc_geom, acc.yc_geom)
    assert acc.pmoi == 0.0
    assert not acc.pmoi_map.any()
    assert acc.mean_density < 0

def test_rejects_non_2d(unit_geometry, full_range):
    with pytest.raises(ValueError):
        accumulate_slice(np.zeros((2, 2, 2)), full_range, unit_geometry, 0.0, 1.0)
