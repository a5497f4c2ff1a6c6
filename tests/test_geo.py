"""Tests for great-circle distance and address geocoding."""

import math

import httpx
import pytest

from app.core.exceptions import GeocodingError
from app.modules.geo.service import EARTH_RADIUS_KM, GeoLocator, haversine_distance_km


def test_distance_to_self_is_zero():
    """Test a point is zero kilometres from itself."""
    assert haversine_distance_km(25.0339, 121.5645, 25.0339, 121.5645) == 0.0


def test_one_degree_of_latitude():
    """Test one degree along a meridian."""
    expected = EARTH_RADIUS_KM * math.pi / 180
    assert haversine_distance_km(0, 0, 1, 0) == pytest.approx(expected)


def test_quarter_of_the_equator():
    """Test a quarter turn along the equator."""
    assert haversine_distance_km(0, 0, 0, 90) == pytest.approx(EARTH_RADIUS_KM * math.pi / 2)


def test_antipodal_points():
    """Test antipodal points are half a circumference apart and do not blow up."""
    assert haversine_distance_km(0, 0, 0, 180) == pytest.approx(EARTH_RADIUS_KM * math.pi)


def test_distance_is_symmetric():
    """Test swapping the endpoints gives the same distance."""
    there = haversine_distance_km(25.0339, 121.5645, 25.0478, 121.5170)
    back = haversine_distance_km(25.0478, 121.5170, 25.0339, 121.5645)
    assert there == pytest.approx(back)
    assert there > 0


@pytest.mark.parametrize("coordinates", [
    (math.nan, 0, 0, 0),
    (0, math.inf, 0, 0),
    (0, 0, -math.inf, 0),
])
def test_non_finite_input_gives_nan(coordinates):
    """Test non-finite coordinates yield NaN instead of raising."""
    assert math.isnan(haversine_distance_km(*coordinates))


def test_geocode_known_address(geolocator, geocoding_calls):
    """Test a resolvable address returns its coordinates."""
    coordinates = geolocator.geocode("  Taipei 101 ")

    assert coordinates.lat == pytest.approx(25.0339)
    assert coordinates.lng == pytest.approx(121.5645)
    assert geocoding_calls == ["Taipei 101"]


def test_geocode_no_results(geolocator):
    """Test an address without matches raises GeocodingError, a LookupError."""
    with pytest.raises(GeocodingError) as exc_info:
        geolocator.geocode("Atlantis")
    assert isinstance(exc_info.value, LookupError)
    assert exc_info.value.status_code == 422


def test_geocode_http_error_status(geolocator):
    """Test a non-200 response is reported as a lookup failure."""
    with pytest.raises(GeocodingError):
        geolocator.geocode("server error")


def test_geocode_network_failure(geolocator):
    """Test transport errors are reported as a lookup failure."""
    with pytest.raises(GeocodingError):
        geolocator.geocode("network down")


def test_geocode_empty_address_makes_no_request(geolocator, geocoding_calls):
    """Test an empty address fails without calling the service."""
    with pytest.raises(GeocodingError):
        geolocator.geocode("   ")
    assert geocoding_calls == []


@pytest.mark.parametrize("body", [[], "OK", None, 42])
def test_geocode_non_object_body(body):
    """Test a 200 response whose JSON is not an object is reported as a lookup failure."""
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
    geolocator = GeoLocator(api_key="test-key", client=client, url="https://geocode.test/json")

    with pytest.raises(GeocodingError):
        geolocator.geocode("Taipei 101")
