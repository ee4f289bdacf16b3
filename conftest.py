"""Shared pytest fixtures for Qt application lifecycle."""

import os
import sys

import pytest
from PySide6.QtCore import QCoreApplication, QSettings
from PySide6.QtGui import QGuiApplication

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture(scope="session")
def app():
    """Provide a single QGuiApplication for all tests."""
    instance = QGuiApplication.instance()
    if instance is None:
        instance = QGuiApplication(sys.argv)

    yield instance

    # Avoid PySide shutdown crashes when clipboard owns QMimeData.
    clipboard = QGuiApplication.clipboard()
    if clipboard is not None:
        clipboard.clear()

    QCoreApplication.processEvents()


@pytest.fixture
def play_model(app):
    from playdraw import PlayModel

    return PlayModel()


@pytest.fixture
def settings(tmp_path):
    """QSettings backed by a throwaway INI file."""
    return QSettings(str(tmp_path / "playdraw.ini"), QSettings.IniFormat)
