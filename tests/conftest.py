"""Shared fixtures for tscatalog tests."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from tscatalog.infrastructure.config import reset_settings
from tscatalog.infrastructure.logging import reset_logging
from tscatalog.registry import reset_registry

FIXTURES = Path(__file__).parent / "fixtures"

AWATTAR_FILE = FIXTURES / "9c261c33-d44e-461e-8ec1-68803cb73f12-en_US.ts"

GERMAN_TS = """<?xml version="1.0" encoding="utf-8"?>
<!DOCTYPE TS>
<TS version="2.1" language="de_DE">
<context>
    <name>awattar</name>
    <message>
        <location filename="../plugininfo.h" line="45"/>
        <location filename="../plugininfo.h" line="48"/>
        <source>Online</source>
        <extracomment>The name of the ParamType
----------
The name of the StateType</extracomment>
        <translation>Verbunden</translation>
    </message>
    <message>
        <location filename="../plugininfo.h" line="54"/>
        <source>RPL address</source>
        <translation type="unfinished"></translation>
    </message>
    <message>
        <location filename="../plugininfo.h" line="90"/>
        <source>valid until</source>
        <translation type="unfinished">gültig bis</translation>
    </message>
    <message>
        <location filename="../plugininfo.h" line="99"/>
        <source>Open</source>
        <comment>door state</comment>
        <translation>Offen</translation>
    </message>
    <message>
        <location filename="../plugininfo.h" line="100"/>
        <source>Open</source>
        <comment>verb</comment>
        <translation>Öffnen</translation>
    </message>
    <message>
        <location filename="../plugininfo.h" line="120"/>
        <source>old price</source>
        <translation type="obsolete">alter Preis</translation>
    </message>
</context>
<context>
    <name>DevicePluginAwattar</name>
    <message numerus="yes">
        <location filename="../integrationpluginawattar.cpp" line="140"/>
        <source>%n price(s) received</source>
        <translation>
            <numerusform>%n Preis empfangen</numerusform>
            <numerusform>%n Preise empfangen</numerusform>
        </translation>
    </message>
    <message>
        <location filename="../integrationpluginawattar.cpp" line="72"/>
        <source>This token is not valid.</source>
        <translation>Dieses Token ist ungültig.</translation>
    </message>
</context>
</TS>
"""


@pytest.fixture(autouse=True)
def reset_globals(monkeypatch):
    """Reset process-wide settings, registry and logging around each test."""
    for key in list(os.environ):
        if key.startswith("TSCATALOG_"):
            monkeypatch.delenv(key)
    reset_settings()
    reset_registry()
    yield
    reset_registry()
    reset_settings()
    reset_logging()


@pytest.fixture
def awattar_file() -> Path:
    return AWATTAR_FILE


@pytest.fixture
def german_text() -> str:
    return GERMAN_TS


@pytest.fixture
def german_file(tmp_path: Path) -> Path:
    path = tmp_path / "awattar-de_DE.ts"
    path.write_text(GERMAN_TS, encoding="utf-8")
    return path


@pytest.fixture
def translations_dir(tmp_path: Path) -> Path:
    """Directory with an English and a German catalog."""
    directory = tmp_path / "translations"
    directory.mkdir()
    (directory / AWATTAR_FILE.name).write_bytes(AWATTAR_FILE.read_bytes())
    (directory / "awattar-de_DE.ts").write_text(GERMAN_TS, encoding="utf-8")
    return directory
