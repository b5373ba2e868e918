import json

import pytest

import server
from doctors.models import NormalizationStrategy

DATA_FILE = server.BASE_DIR / "data" / "doctors.json"


@pytest.fixture
def client():
    server.load_data(source_path=DATA_FILE, source_url="", strategy=NormalizationStrategy.GROUPED)
    server.app.config['TESTING'] = True
    yield server.app.test_client()
    server.load_data(source_path=DATA_FILE, source_url="", strategy=NormalizationStrategy.GROUPED)


def _names(payload):
    return [card["name"] for card in payload["doctors"]]


def test_api_doctors_unfiltered(client):
    resp = client.get('/api/doctors?lang=en')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["count"] == 5
    assert data["count_text"] == "5 doctors"
    assert data["selection"]["city"] == ""


def test_api_doctors_matches_city_in_any_language(client):
    data = client.get('/api/doctors?lang=zh-hk&city=Hong Kong').get_json()
    assert data["lang"] == "zh-HK"
    assert [card["id"] for card in data["doctors"]] == ["1", "3", "5"]
    # display language falls back to English where no Chinese row exists
    assert _names(data) == ["陳偉文醫生", "Dr. Lee Chi Keung", "Dr. Chan Siu Ming"]

    data = client.get('/api/doctors?lang=en&city=香港').get_json()
    assert [card["id"] for card in data["doctors"]] == ["1"]
    assert _names(data) == ["Dr. Tan Wai Man"]


def test_api_doctors_name_search(client):
    data = client.get('/api/doctors?lang=en&q=WONG').get_json()
    assert [card["id"] for card in data["doctors"]] == ["2"]
    data = client.get('/api/doctors?lang=en&q=黃').get_json()
    assert [card["id"] for card in data["doctors"]] == ["2"]


def test_api_doctors_card_links(client):
    data = client.get('/api/doctors?lang=en&specialty=Cardiology&district=Central').get_json()
    assert data["count"] == 1
    card = data["doctors"][0]
    assert card["id"] == "5"
    assert card["specialty"] == "Cardiology"
    assert card["tel"] == ""
    assert card["map_url"].startswith("https://www.google.com/maps")


def test_api_doctors_url_carries_lang(client):
    data = client.get('/api/doctors?city=Kowloon&lang=ZH-HK').get_json()
    assert data["url"].endswith("city=Kowloon&lang=zh-hk")


def test_api_vocabulary(client):
    data = client.get('/api/vocabulary?lang=en&city=Hong Kong').get_json()
    assert set(data["cities"]) == {"Hong Kong", "Kowloon", "新界"}
    assert "Cardiology" in data["specialties"]
    assert sorted(data["districts"]) == ["Central", "Wan Chai"]
    assert data["default_city"] == "Hong Kong"

    data = client.get('/api/vocabulary?lang=zh-hk').get_json()
    assert data["default_city"] == "香港"
    assert "心臟科" in data["specialties"]


def test_api_translations(client):
    data = client.get('/api/translations?lang=zh-hk').get_json()
    assert data["texts"]["callToBook"] == "致電預約"
    assert "en" in data["supported"]


def test_api_version(client):
    data = client.get('/api/version').get_json()
    assert data["data_loaded"] is True
    assert data["rows"] == 7
    assert data["doctors"] == 5


def test_per_row_strategy_keeps_every_row(client):
    server.load_data(source_path=DATA_FILE, source_url="", strategy=NormalizationStrategy.PER_ROW)
    data = client.get('/api/version').get_json()
    assert data["doctors"] == 7
    cards = client.get('/api/doctors?lang=en&city=Hong Kong').get_json()["doctors"]
    assert [card["key"] for card in cards] == ["1|en|0", "3|en|4", "5|en|6"]
    cards = client.get('/api/doctors?lang=en&q=陳').get_json()["doctors"]
    assert [(card["name"], card["lang"]) for card in cards] == [("陳偉文醫生", "zh-HK")]


def test_raw_data_not_cached(client):
    resp = client.get('/data/doctors.json')
    assert resp.status_code == 200
    assert len(resp.get_json()) == 7
    assert "no-store" in resp.headers["Cache-Control"]


def test_index_preselects_home_city(client):
    resp = client.get('/?lang=en')
    assert resp.status_code == 200
    assert "charset=utf-8" in resp.headers["Content-Type"]
    html = resp.get_data(as_text=True)
    assert '<option value="Hong Kong" selected>' in html
    assert "3 doctors" in html


def test_index_explicit_empty_city_shows_all(client):
    html = client.get('/?lang=en&city=').get_data(as_text=True)
    assert "5 doctors" in html


def test_language_path_segment(client):
    html = client.get('/zh-hk').get_data(as_text=True)
    assert '<option value="香港" selected>' in html
    assert "陳偉文醫生" in html
    assert "共找到 1 位醫生" in html


def test_unknown_path_segment_is_404(client):
    assert client.get('/fr').status_code == 404


def test_load_failure_reports_error(client, tmp_path):
    assert server.load_data(source_path=tmp_path / "missing.json", source_url="") is False
    assert server.load_error

    resp = client.get('/api/doctors?lang=zh-hk')
    assert resp.status_code == 503
    data = resp.get_json()
    assert data["error"] == "載入資料時出錯"
    assert data["count"] == 0

    resp = client.get('/?lang=en')
    assert resp.status_code == 503
    assert "Error loading data" in resp.get_data(as_text=True)


def test_frontend_log_accepts_plain_text(client):
    resp = client.post('/api/frontend-log', data=json.dumps({"eventType": "click"}), content_type='text/plain')
    assert resp.get_json() == {"status": "ok"}


def test_compression_enabled():
    app = server.create_app()

    @app.route('/large-response')
    def large_response():
        return "A" * 5000

    response = app.test_client().get('/large-response', headers={'Accept-Encoding': 'gzip'})
    assert response.headers.get('Content-Encoding') == 'gzip'
    assert len(response.data) < 5000
