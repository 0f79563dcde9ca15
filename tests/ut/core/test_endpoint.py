import pytest

from parley.core.models.endpoint import Endpoint


@pytest.mark.ut
def test_parse_host_port():
    endpoint = Endpoint.parse("localhost:5000")
    assert endpoint == Endpoint("localhost", 5000)
    assert endpoint.as_tuple() == ("localhost", 5000)
    assert str(endpoint) == "localhost:5000"


@pytest.mark.ut
def test_parse_ipv6():
    endpoint = Endpoint.parse("[::1]:6000")
    assert endpoint.host == "::1"
    assert endpoint.port == 6000
    assert str(endpoint) == "[::1]:6000"


@pytest.mark.ut
def test_port_zero_is_allowed():
    assert Endpoint("127.0.0.1", 0).port == 0


@pytest.mark.ut
@pytest.mark.parametrize("address", ["localhost", "localhost:abc", "[::1]6000", ":5000", "host:70000"])
def test_parse_invalid(address):
    with pytest.raises(ValueError):
        Endpoint.parse(address)


@pytest.mark.ut
def test_rejects_non_int_port():
    with pytest.raises(TypeError):
        Endpoint("localhost", "5000")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Endpoint("localhost", True)


@pytest.mark.ut
def test_endpoint_is_immutable():
    endpoint = Endpoint("localhost", 5000)
    with pytest.raises(AttributeError):
        endpoint.port = 6000  # type: ignore[misc]
