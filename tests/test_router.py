import pytest
from fastapi.testclient import TestClient

from config_factory import CONF
from fastapi_app import app
from routers.risk_analysis import get_engine
from tests.utils import GANGNAM, FakeGeocoder


def _body(category="cafe", lat=GANGNAM[0], lng=GANGNAM[1]):
    return {
        "message": "Risk analysis request",
        "request_info": {},
        "request_body": {"lat": lat, "lng": lng, "targetCategory": category},
    }


@pytest.fixture
def client_for(make_engine):
    def _client(**engine_kwargs):
        engine = make_engine(**engine_kwargs)
        app.dependency_overrides[get_engine] = lambda: engine
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def test_analysis_endpoint(client_for, populated_store):
    response = client_for(grid=populated_store).post(CONF.risk_analysis, json=_body())
    assert response.status_code == 200

    payload = response.json()
    assert payload["request_id"]
    data = payload["data"]
    assert 0 <= data["analysis"]["score"] <= 100
    assert data["analysis"]["risk_level"] in {"LOW", "MEDIUM", "HIGH", "VERY_HIGH"}
    assert data["location"]["cell_id"]
    assert len(data["risk_cards"]) <= 3
    assert set(data["metrics"]) == {"competition", "traffic", "cost", "survival", "anchor"}


def test_unknown_category_is_rejected(client_for):
    response = client_for().post(CONF.risk_analysis, json=_body(category="spaceport"))
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "target_category"


def test_out_of_range_coordinate_is_rejected(client_for):
    response = client_for().post(CONF.risk_analysis, json=_body(lat=95.0))
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "lat"


def test_timeout_maps_to_504(client_for):
    client = client_for(geocoder=FakeGeocoder(delay_s=1.0), timeout=0.05)
    response = client.post(CONF.risk_analysis, json=_body())
    assert response.status_code == 504
