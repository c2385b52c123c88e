import numpy as np
import pytest

from pairdist.distance import earth_radius, haversine, haversine_miles


def test_one_degree_on_equator_in_miles():
    assert f"{haversine_miles(0.0, 0.0, 0.0, 1.0):.3f}" == "69.093"


def test_kilometres():
    assert haversine(0.0, 0.0, 0.0, 1.0, unit="km") == pytest.approx(111.195, abs=1e-3)


def test_same_point_is_zero():
    assert haversine_miles(18.18, -66.75, 18.18, -66.75) == 0.0


def test_symmetric():
    a = haversine_miles(40.7128, -74.0060, 29.7604, -95.3698)
    b = haversine_miles(29.7604, -95.3698, 40.7128, -74.0060)
    assert a == pytest.approx(b)
    assert a == pytest.approx(1419.0, rel=0.01)


def test_antipodal_points_do_not_produce_nan():
    d = haversine_miles(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(np.pi * earth_radius("mi"))


def test_vectorised_against_many_destinations():
    lats = np.array([0.0, 0.0, 1.0])
    lngs = np.array([0.0, 1.0, 0.0])
    d = haversine(0.0, 0.0, lats, lngs)
    assert d.shape == (3,)
    assert d[0] == 0.0
    assert d[1] == pytest.approx(haversine_miles(0.0, 0.0, 0.0, 1.0))
    assert d[2] == pytest.approx(d[1])


def test_unknown_unit():
    with pytest.raises(ValueError, match="Unknown distance unit"):
        haversine(0.0, 0.0, 1.0, 1.0, unit="furlong")
