"""Flask-Anwendung für die mehrsprachige Arztliste.

Beim Start werden die Rohdaten (eine Zeile pro Arzt und Sprache) einmalig aus
einer lokalen JSON-Datei oder einer URL geladen und mit dem konfigurierten
Verfahren normalisiert (``grouped`` oder ``per_row``). Danach ist jede Anfrage
ein reiner Filterdurchlauf über die Daten im Speicher: die JSON-API liefert
gefilterte Karten und Filteroptionen, ``/`` rendert dieselbe Liste als HTML.
Schlägt das Laden fehl, wird der Fehler einmal geloggt und alle Endpunkte
melden "Error loading data" mit null Treffern; ein erneuter Versuch erfolgt
erst beim nächsten Start.
"""

import os
import json
import configparser
import logging
import shutil
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from flask import Flask, abort, jsonify, request
from flask_compress import Compress

from doctors.language import (
    LANG_SYNONYMS,
    SUPPORTED_LANGS,
    normalize_language,
    resolve_initial_language,
    url_with_lang,
)
from doctors.models import Doctor, NormalizationStrategy
from doctors.normalizer import normalize_records
from doctors.presentation import doctor_card, render_page
from doctors.storage import DataLoadError, fetch_records, load_records
from doctors.view_state import ViewState, apply_selection, initial_state, visible
from doctors.vocabulary import area_options, default_city, district_options
from runtime_config import load_merged_config
from utils import doctors_count, translate, translations_for

BASE_DIR = Path(__file__).resolve().parent


# Custom StreamHandler to handle encoding errors
class SafeEncodingStreamHandler(logging.StreamHandler):
    def emit(self, record):
        """Schreibt Logzeilen robust unter Erhalt nicht-ASCII-Zeichen."""
        try:
            msg = self.format(record)
            stream = self.stream
            stream.write(msg.encode('utf-8', errors='replace').decode('utf-8', errors='ignore') + self.terminator)
            self.flush()
        except Exception:
            self.handleError(record)


class SafeRotatingFileHandler(RotatingFileHandler):
    """Rotating handler that tolerates Windows file locks (e.g. OneDrive/AV)."""

    def rotate(self, source: str, dest: str) -> None:
        try:
            super().rotate(source, dest)
            return
        except PermissionError as exc:
            if getattr(exc, "winerror", None) != 32:
                raise
        # Fallback: copy current log and truncate instead of renaming
        try:
            if os.path.exists(source):
                shutil.copy2(source, dest)
            with open(source, "w", encoding=self.encoding or "utf-8") as fh:
                fh.truncate(0)
        except OSError:
            return


root_logger = logging.getLogger()

for handler in root_logger.handlers[:]:
    root_logger.removeHandler(handler)
    handler.close()

formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(message)s')

safe_handler = SafeEncodingStreamHandler(sys.stdout)
safe_handler.setFormatter(formatter)
root_logger.addHandler(safe_handler)

logger = logging.getLogger(__name__)  # Module-level logger

# --- Konfiguration ---
load_dotenv()

try:
    config = load_merged_config()
except configparser.Error:
    logging.exception("Konfiguration konnte nicht vollständig geladen werden, nutze Fallback")
    config = configparser.ConfigParser()

APP_VERSION = config.get('APP', 'version', fallback='dev')

CONSOLE_LOG_LEVEL_NAME = config.get('LOGGING', 'console_level', fallback='INFO').upper()
CONSOLE_LOG_LEVEL = logging.getLevelName(CONSOLE_LOG_LEVEL_NAME)
if not isinstance(CONSOLE_LOG_LEVEL, int):
    CONSOLE_LOG_LEVEL = logging.INFO
safe_handler.setLevel(CONSOLE_LOG_LEVEL)
root_logger.setLevel(CONSOLE_LOG_LEVEL)

# Optional: Dateibasiertes Logging (RotatingFileHandler) per config.ini
LOG_FILE_ENABLED = config.getboolean('LOGGING', 'file_enabled', fallback=False)
LOG_FILE_PATH = config.get('LOGGING', 'file_path', fallback='')
LOG_FILE_MAX_BYTES = max(0, config.getint('LOGGING', 'file_max_bytes', fallback=1048576))
LOG_FILE_BACKUP_COUNT = max(0, config.getint('LOGGING', 'file_backup_count', fallback=3))

if LOG_FILE_ENABLED and LOG_FILE_PATH:
    log_path = Path(LOG_FILE_PATH)
    if not log_path.is_absolute():
        log_path = BASE_DIR / log_path
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = SafeRotatingFileHandler(
            log_path,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUP_COUNT,
            encoding='utf-8',
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(CONSOLE_LOG_LEVEL)
        root_logger.addHandler(file_handler)
        logger.info("Datei-Logging aktiv: %s", log_path)
    except OSError as e:
        logger.warning("Datei-Logging konnte nicht aktiviert werden (%s): %s", log_path, e)

DATA_SOURCE_PATH = Path(config.get('DATA', 'source_path', fallback='data/doctors.json'))
if not DATA_SOURCE_PATH.is_absolute():
    DATA_SOURCE_PATH = BASE_DIR / DATA_SOURCE_PATH
DATA_SOURCE_URL = config.get('DATA', 'source_url', fallback='').strip()
DATA_TIMEOUT = config.getfloat('DATA', 'timeout', fallback=10.0)

try:
    NORMALIZATION_STRATEGY = NormalizationStrategy.parse(config.get('DATA', 'strategy', fallback='grouped'))
except ValueError as e:
    logger.warning("%s - nutze 'grouped'", e)
    NORMALIZATION_STRATEGY = NormalizationStrategy.GROUPED

DEFAULT_LANG = normalize_language(config.get('LANGUAGE', 'default', fallback='en'))
VOCABULARY_FALLBACK = config.getboolean('FILTERS', 'vocabulary_fallback', fallback=True)
SELECT_DEFAULT_CITY = config.getboolean('FILTERS', 'default_city', fallback=True)

FILTER_PARAMS = ('q', 'specialty', 'city', 'district', 'area')

# --- Globale Datencontainer ---
raw_records: List[Dict[str, Any]] = []
doctors_list: List[Doctor] = []
daten_geladen: bool = False
load_error: Optional[str] = None


def _reset_data_containers() -> None:
    raw_records.clear()
    doctors_list.clear()


def load_data(
    source_path: Optional[Path] = None,
    source_url: Optional[str] = None,
    strategy: Optional[NormalizationStrategy] = None,
) -> bool:
    """Lädt die Rohzeilen einmalig und baut daraus die Arztliste.

    Eine URL hat Vorrang vor der lokalen Datei. Fehler werden genau einmal
    geloggt; danach bleibt die Liste leer und ``load_error`` gesetzt.
    """
    global daten_geladen, load_error

    url = DATA_SOURCE_URL if source_url is None else source_url
    path = source_path or DATA_SOURCE_PATH
    logger.info("--- Lade Daten ---")
    _reset_data_containers()
    try:
        if url:
            records = fetch_records(url, timeout=DATA_TIMEOUT)
        else:
            records = load_records(path)
    except DataLoadError as e:
        logger.error("FEHLER beim Laden der Arztliste: %s", e)
        daten_geladen = False
        load_error = str(e)
        return False

    raw_records.extend(records)
    doctors_list.extend(normalize_records(records, strategy or NORMALIZATION_STRATEGY))
    daten_geladen = True
    load_error = None
    logger.info("--- Daten laden abgeschlossen (%s Ärzte) ---", len(doctors_list))
    return True


def create_app() -> Flask:
    """
    Erstellt die Flask-Instanz.
    Gunicorn ruft diese Factory einmal pro Worker auf und bekommt das
    WSGI-Objekt zurück.
    """
    app = Flask(__name__, static_folder=None)
    # Chinesische Namen sollen im JSON lesbar bleiben
    app.json.ensure_ascii = False  # type: ignore[attr-defined]

    if not daten_geladen and load_error is None:
        logger.info("Initialer Daten-Load beim App-Start …")
        load_data()

    @app.after_request
    def _ensure_utf8_charset(response):
        """Stelle sicher, dass textbasierte Antworten explizit UTF-8 senden."""
        content_type = response.headers.get("Content-Type")
        if content_type:
            lowered = content_type.lower()
            needs_charset = "charset=" not in lowered and (
                lowered.startswith("text/")
                or lowered.startswith("application/json")
            )
            if needs_charset:
                response.headers["Content-Type"] = f"{content_type}; charset=utf-8"
        return response

    Compress(app)
    return app


# Die App-Instanz, auf die Gunicorn zugreift
app: Flask = create_app()


# --- Request-Hilfen ---
def _request_lang(path: str = "") -> str:
    return resolve_initial_language(request.args.get('lang'), path, DEFAULT_LANG)


def _has_filter_params() -> bool:
    return any(name in request.args for name in FILTER_PARAMS)


def _state_for_request(lang: str, select_default_city: bool) -> ViewState:
    """Baut den Ansichtszustand aus den Query-Parametern der Anfrage."""
    state = initial_state(
        doctors_list,
        lang,
        select_default_city=select_default_city,
        use_fallback=VOCABULARY_FALLBACK,
    )
    if not _has_filter_params():
        return state
    args = request.args
    return apply_selection(
        state,
        doctors_list,
        query=args.get('q', ''),
        specialty=args.get('specialty', ''),
        city=args.get('city', ''),
        district=args.get('district', ''),
        area=args.get('area', ''),
    )


def _load_error_response(lang: str):
    return jsonify({
        "error": translate('errorLoading', lang),
        "count": 0,
        "count_text": doctors_count(0, lang),
        "doctors": [],
    }), 503


def _apply_no_cache_headers(response: Any) -> Any:
    """Force browsers to refresh the data file."""
    response.cache_control.max_age = 0
    response.cache_control.no_cache = True
    response.cache_control.no_store = True
    response.cache_control.must_revalidate = True
    response.headers["Pragma"] = "no-cache"
    response.headers["Expires"] = "0"
    return response


# --- API ---
@app.route('/api/doctors')
def api_doctors() -> Any:
    """Gefilterte Arztliste als Karten (Abgleich über alle Sprachen)."""
    lang = _request_lang()
    if not daten_geladen:
        return _load_error_response(lang)
    state = _state_for_request(lang, select_default_city=False)
    result = visible(state, doctors_list)
    sel = state.selection
    return jsonify({
        "lang": lang,
        "count": len(result),
        "count_text": doctors_count(len(result), lang),
        "selection": {
            "q": sel.query,
            "specialty": sel.specialty,
            "city": sel.city,
            "district": sel.district,
            "area": sel.area,
        },
        "url": url_with_lang(request.url, lang),
        "doctors": [doctor_card(d, lang) for d in result],
    })


@app.route('/api/vocabulary')
def api_vocabulary() -> Any:
    """Filteroptionen in der angefragten Sprache inkl. abhängiger Listen."""
    lang = _request_lang()
    if not daten_geladen:
        return _load_error_response(lang)
    state = initial_state(doctors_list, lang, select_default_city=False, use_fallback=VOCABULARY_FALLBACK)
    vocab = state.vocabulary
    city = request.args.get('city', '')
    district = request.args.get('district', '')
    return jsonify({
        "lang": lang,
        "specialties": vocab.sorted_specialties(),
        "cities": vocab.sorted_cities(),
        "districts": district_options(vocab, doctors_list, city),
        "areas": area_options(vocab, doctors_list, city, district),
        "default_city": default_city(vocab, lang) if SELECT_DEFAULT_CITY else "",
    })


@app.route('/api/translations')
def api_translations() -> Any:
    """UI-Texte für die gewünschte Sprache."""
    lang = _request_lang()
    return jsonify({"lang": lang, "supported": list(SUPPORTED_LANGS), "texts": translations_for(lang)})


@app.route('/api/version')
def api_version() -> Any:
    """Return the configured application version and data status."""
    return jsonify({
        "version": APP_VERSION,
        "strategy": NORMALIZATION_STRATEGY.value,
        "data_loaded": daten_geladen,
        "rows": len(raw_records),
        "doctors": len(doctors_list),
    })


@app.route('/api/frontend-log', methods=['POST'])
def frontend_log() -> Any:
    """Receive diagnostic messages from the frontend and write them to the server log."""
    payload: Dict[str, Any]
    if request.is_json:
        payload = request.get_json(silent=True) or {}
    else:
        raw_text = request.get_data(as_text=True) or ""
        try:
            payload = json.loads(raw_text) if raw_text else {}
        except json.JSONDecodeError:
            payload = {"raw": raw_text}
    if not isinstance(payload, dict):
        payload = {"raw": payload}
    event_type = payload.get("eventType") or payload.get("event_type")
    logger.info("Frontend log (%s): %s", event_type, payload)
    return jsonify({"status": "ok"})


@app.route('/data/doctors.json')
def raw_data() -> Any:
    """Rohdaten wie geladen, ohne Browser-Cache."""
    if not daten_geladen:
        return _load_error_response(_request_lang())
    return _apply_no_cache_headers(jsonify(raw_records))


# --- HTML ---
def _render_listing(path: str) -> Any:
    lang = _request_lang(path)
    if not daten_geladen:
        return render_page(None, [], lang, error=True), 503
    # Vorauswahl der Stadt nur beim ersten Aufruf ohne Filterparameter
    state = _state_for_request(lang, select_default_city=SELECT_DEFAULT_CITY)
    return render_page(state, visible(state, doctors_list), lang)


@app.route("/")
def index_route() -> Any:
    """Server-gerenderte Liste; Sprache aus ``?lang=``."""
    return _render_listing("")


@app.route("/<segment>")
@app.route("/<segment>/")
def lang_route(segment: str) -> Any:
    """Liste unter einem Sprachpräfix wie ``/zh-hk``."""
    if segment.lower() not in LANG_SYNONYMS:
        abort(404)
    return _render_listing(segment)


def _run_local() -> None:
    """Lokaler Debug-Server."""
    port = int(os.environ.get("PORT", 8000))
    logger.warning("Lokal verfügbar auf http://127.0.0.1:%s", port)
    app.run(host="0.0.0.0", port=port, debug=True)


if __name__ == "__main__":
    _run_local()
