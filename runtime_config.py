"""Konfiguration der Arztliste: ``config.ini`` plus lokale Overrides.

``config.ini`` enthält die versionierten Grundeinstellungen (Datenquelle,
Normalisierungsstrategie, Logging). Maschinenspezifische Werte gehören in
``config.runtime.ini``, das beim Laden darübergelegt wird. Einzelne Werte
lassen sich zusätzlich per Umgebungsvariable überschreiben (siehe
``ENV_OVERRIDES``), z. B. für Deployments ohne eigene INI-Datei.
"""

from __future__ import annotations

import configparser
import os
from pathlib import Path
from typing import Dict, Optional, Tuple

CONFIG_MAIN_PATH = Path(__file__).resolve().parent / "config.ini"
CONFIG_RUNTIME_PATH = Path(__file__).resolve().parent / "config.runtime.ini"

# Umgebungsvariable -> (Sektion, Option)
ENV_OVERRIDES: Dict[str, Tuple[str, str]] = {
    "DOCTORS_DATA_URL": ("DATA", "source_url"),
    "DOCTORS_DATA_PATH": ("DATA", "source_path"),
    "DOCTORS_STRATEGY": ("DATA", "strategy"),
    "DOCTORS_DEFAULT_LANG": ("LANGUAGE", "default"),
    "LOG_LEVEL": ("LOGGING", "console_level"),
}


def _read(cfg: configparser.ConfigParser, path: Path) -> None:
    if path.exists():
        cfg.read(path, encoding="utf-8-sig")


def load_base_config(path: Optional[Path] = None) -> configparser.ConfigParser:
    """Lädt ausschließlich die statische Grundkonfiguration."""
    cfg = configparser.ConfigParser()
    _read(cfg, path or CONFIG_MAIN_PATH)
    return cfg


def load_runtime_config(path: Optional[Path] = None) -> configparser.ConfigParser:
    """Lädt nur die dynamische Laufzeitkonfiguration."""
    cfg = configparser.ConfigParser()
    _read(cfg, path or CONFIG_RUNTIME_PATH)
    return cfg


def apply_env_overrides(cfg: configparser.ConfigParser, environ: Optional[Dict[str, str]] = None) -> None:
    """Übernimmt gesetzte Umgebungsvariablen in ``cfg``."""
    env = os.environ if environ is None else environ
    for name, (section, option) in ENV_OVERRIDES.items():
        value = env.get(name)
        if value is None or not value.strip():
            continue
        if not cfg.has_section(section):
            cfg.add_section(section)
        cfg.set(section, option, value.strip())


def load_merged_config(
    main_path: Optional[Path] = None,
    runtime_path: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> configparser.ConfigParser:
    """Kombiniert statische, dynamische und Umgebungs-Konfiguration."""
    base = load_base_config(main_path)
    runtime = load_runtime_config(runtime_path)
    for section in runtime.sections():
        if not base.has_section(section):
            base.add_section(section)
        for key, value in runtime.items(section):
            base.set(section, key, value)
    apply_env_overrides(base, environ)
    return base

