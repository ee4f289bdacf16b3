"""Play files and play library export for PlayDraw.

This module saves and loads single plays as JSON files, keeps the recent
plays list and user preferences in QSettings, and exports collections of
plays for interchange and LLM-assisted authoring.
"""

import json
import os
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from PySide6.QtCore import (
    Property,
    QObject,
    QSettings,
    QUrl,
    Signal,
    Slot,
)

from playdraw import PlayModel
from playdraw.types import LineBreakType, RouteStyle

PLAY_SCHEMA_FIELDS = {
    "id": "Unique identifier for the play",
    "name": "Name of the play",
    "players": "Array of player objects with position (x, y), color, and type (offense/defense)",
    "routes": "Array of route objects with points (path), style (solid/dashed), and lineBreakType",
    "playerRouteAssociations": "Object mapping player IDs to route IDs they are associated with",
    "textBoxes": "Optional array of text annotations",
    "circles": "Optional array of circle markers",
    "footballs": "Optional array of football positions",
    "playNotes": "Optional text notes describing the play",
}

LLM_EXAMPLE_COUNT = 5


def clean_play(play: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only the fields needed to rebuild a play, dropping empty optionals."""
    cleaned = {
        "id": play.get("id"),
        "name": play.get("name"),
        "players": play.get("players") or [],
        "routes": play.get("routes") or [],
        "playerRouteAssociations": play.get("playerRouteAssociations") or {},
    }
    for key in ("textBoxes", "circles", "footballs"):
        if play.get(key):
            cleaned[key] = play[key]
    if play.get("playNotes"):
        cleaned["playNotes"] = play["playNotes"]
    return cleaned


def unique_plays(plays: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drop duplicate plays by id; the last copy wins, the first position is kept."""
    by_id: Dict[Any, Dict[str, Any]] = {}
    for play in plays:
        by_id[play.get("id")] = play
    return list(by_id.values())


def export_plays_json(plays: Iterable[Dict[str, Any]]) -> str:
    """Serialize a play collection for interchange."""
    return json.dumps([clean_play(play) for play in unique_plays(plays)], indent=2)


def export_plays_for_llm(plays: Iterable[Dict[str, Any]]) -> str:
    """Serialize a play collection with a schema description and examples."""
    plays_array = json.loads(export_plays_json(plays))
    llm_format = {
        "schema": {
            "description": "Flag football play structure",
            "fields": PLAY_SCHEMA_FIELDS,
        },
        "examples": plays_array[:LLM_EXAMPLE_COUNT],
        "totalPlays": len(plays_array),
        "allPlays": plays_array,
    }
    return json.dumps(llm_format, indent=2)


def read_play_file(file_path: str) -> Dict[str, Any]:
    """Return the play record stored in a play file.

    Both the versioned wrapper written by ``PlayFileManager`` and a bare
    play record are accepted.
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise TypeError("play file does not contain an object")
    play = data.get("play", data)
    if not isinstance(play, dict):
        raise TypeError("play record is not an object")
    return play


class PlayFileManager(QObject):
    """Manager for saving and loading play files.

    Play files are JSON files containing:
    - version: the file format version
    - saved_at: ISO timestamp of the save
    - play: the play record (players, routes, associations, annotations, notes)
    """

    PLAY_VERSION = "1.0"
    PLAY_EXTENSION = ".play"
    MAX_RECENT_PLAYS = 8

    saveCompleted = Signal(str)  # Emitted with file path after successful save
    loadCompleted = Signal(str)  # Emitted with file path after successful load
    exportCompleted = Signal(str)  # Emitted with file path after a library export
    errorOccurred = Signal(str)  # Emitted with error message on failure
    recentPlaysChanged = Signal()  # Emitted when recent plays list changes
    currentFilePathChanged = Signal()  # Emitted when current file path changes

    def __init__(self, play_model: PlayModel, settings: Optional[QSettings] = None):
        super().__init__()
        self._play_model = play_model
        self._current_file_path: str = ""
        self._settings = settings if settings is not None else QSettings("PlayDraw", "PlayDraw")
        self._recent_plays: List[str] = self._load_recent_plays()
        self._restore_preferences()
        self._play_model.animationSpeedChanged.connect(self._save_animation_speed)
        self._play_model.quickAddsChanged.connect(self._save_quick_adds)

    # --- Preferences ------------------------------------------------------------
    def _restore_preferences(self) -> None:
        speed = self._settings.value("animation/speed", None)
        try:
            if speed is not None:
                self._play_model.setAnimationSpeed(float(speed))
        except (TypeError, ValueError):
            pass

        stored = self._settings.value("quickAdds/custom", "")
        if not stored:
            return
        try:
            slots = json.loads(stored)
        except (TypeError, json.JSONDecodeError):
            return
        if not isinstance(slots, list):
            return
        for slot in slots:
            if not isinstance(slot, dict):
                continue
            try:
                self._play_model.set_quick_add_template(
                    int(slot["index"]),
                    [(float(pt["x"]), float(pt["y"])) for pt in slot["points"]],
                    RouteStyle(slot.get("style", "solid")),
                    LineBreakType(slot.get("lineBreakType", "rigid")),
                    str(slot.get("color") or "black"),
                    str(slot.get("playerColor") or "red"),
                )
            except (KeyError, TypeError, ValueError):
                continue

    def _save_animation_speed(self) -> None:
        self._settings.setValue("animation/speed", self._play_model.animationSpeed)
        self._settings.sync()

    def _save_quick_adds(self) -> None:
        custom = []
        for index, slot in enumerate(self._play_model.quickAddSlots):
            if slot is None or slot["standard"]:
                continue
            custom.append({"index": index, **slot})
        self._settings.setValue("quickAdds/custom", json.dumps(custom))
        self._settings.sync()

    # --- Recent plays -------------------------------------------------------------
    def _load_recent_plays(self) -> List[str]:
        """Load recent plays list from settings."""
        stored = self._settings.value("recentPlays", [])
        # QSettings may return a string if only one item, or None
        if stored is None:
            return []
        if isinstance(stored, str):
            stored = [stored] if stored else []
        if isinstance(stored, list):
            # Filter out non-existent files
            return [p for p in stored if p and os.path.exists(p)][:self.MAX_RECENT_PLAYS]
        return []

    def _save_recent_plays(self) -> None:
        self._settings.setValue("recentPlays", self._recent_plays)
        self._settings.sync()

    def _add_to_recent(self, file_path: str) -> None:
        """Add a play to the front of the recent plays list."""
        if not file_path or not os.path.exists(file_path):
            return
        if file_path in self._recent_plays:
            self._recent_plays.remove(file_path)
        self._recent_plays.insert(0, file_path)
        self._recent_plays = self._recent_plays[:self.MAX_RECENT_PLAYS]
        self._save_recent_plays()
        self.recentPlaysChanged.emit()

    @Property("QVariantList", notify=recentPlaysChanged)
    def recentPlays(self) -> List[str]:
        """Return the list of recent play file paths."""
        return self._recent_plays

    @Slot(result=list)
    def getRecentPlayNames(self) -> List[Dict[str, str]]:
        """Return list of recent plays with display name and path."""
        result = []
        for path in self._recent_plays:
            name = os.path.basename(path)
            if name.endswith(self.PLAY_EXTENSION):
                name = name[:-len(self.PLAY_EXTENSION)]
            result.append({"name": name, "path": path})
        return result

    @Property(str, notify=currentFilePathChanged)
    def currentFilePath(self) -> str:
        return self._current_file_path

    def _normalize_file_path(self, file_path: str) -> str:
        """Convert file URLs into local paths, including Windows file URLs."""
        if file_path.startswith("file:"):
            url = QUrl(file_path)
            if url.isLocalFile():
                file_path = url.toLocalFile()
            else:
                file_path = url.path()
        if os.name == "nt" and file_path.startswith("/") and len(file_path) > 2 and file_path[2] == ":":
            file_path = file_path[1:]
        return file_path

    # --- Save / load -----------------------------------------------------------------
    @Slot()
    def saveCurrentPlay(self) -> None:
        """Save the play to the file it was loaded from or last saved to."""
        if not self._current_file_path:
            self.errorOccurred.emit("No current play file selected")
            return
        self.savePlay(self._current_file_path)

    @Slot(str)
    def savePlay(self, file_path: str) -> None:
        """Save the current play to a JSON play file.

        Args:
            file_path: Path to save the play file (should end in .play)
        """
        file_path = self._normalize_file_path(file_path)

        if not file_path:
            self.errorOccurred.emit("No file path specified")
            return

        if self._play_model.entityCount == 0:
            self.errorOccurred.emit("Add players or routes before saving the play.")
            return

        # Ensure .play extension
        if not file_path.endswith(self.PLAY_EXTENSION):
            file_path += self.PLAY_EXTENSION

        if not self._play_model.playName.strip():
            name = os.path.basename(file_path)[:-len(self.PLAY_EXTENSION)]
            self._play_model.setPlayName(name)
        if not self._play_model.playId:
            self._play_model.setPlayId(uuid.uuid4().hex)

        try:
            play_data = {
                "version": self.PLAY_VERSION,
                "saved_at": datetime.now().isoformat(),
                "play": self._play_model.to_dict(),
            }
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(play_data, f, ensure_ascii=False, indent=2)

            self._current_file_path = file_path
            self.currentFilePathChanged.emit()
            self._add_to_recent(file_path)
            self.saveCompleted.emit(file_path)
            print(f"Play saved to: {file_path}")

        except (OSError, IOError) as e:
            error_msg = f"Failed to save play: {e}"
            self.errorOccurred.emit(error_msg)
            print(error_msg)

    @Slot(str)
    def loadPlay(self, file_path: str) -> None:
        """Load a play from a JSON play file.

        Args:
            file_path: Path to the play file
        """
        file_path = self._normalize_file_path(file_path)

        if not file_path:
            self.errorOccurred.emit("No file path specified")
            return

        if not os.path.exists(file_path):
            self.errorOccurred.emit(f"File not found: {file_path}")
            return

        try:
            play = read_play_file(file_path)
            self._play_model.from_dict(play)

            self._current_file_path = file_path
            self.currentFilePathChanged.emit()
            self._add_to_recent(file_path)
            self.loadCompleted.emit(file_path)
            print(f"Play loaded from: {file_path}")

        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            error_msg = f"Invalid play file format: {e}"
            self.errorOccurred.emit(error_msg)
            print(error_msg)
        except (OSError, IOError) as e:
            error_msg = f"Failed to load play: {e}"
            self.errorOccurred.emit(error_msg)
            print(error_msg)
        except (KeyError, TypeError) as e:
            error_msg = f"Corrupted play file: {e}"
            self.errorOccurred.emit(error_msg)
            print(error_msg)

    @Slot()
    def newPlay(self) -> None:
        """Start an empty play that is not bound to a file."""
        self._play_model.from_dict({})
        self._current_file_path = ""
        self.currentFilePathChanged.emit()

    @Slot(list, str, bool)
    def exportLibrary(self, file_paths: List[str], output_path: str, for_llm: bool = False) -> None:
        """Bundle several play files into one export file.

        Unreadable play files are skipped with an error message; the export
        itself only fails when the output cannot be written.
        """
        output_path = self._normalize_file_path(output_path)
        if not output_path:
            self.errorOccurred.emit("No file path specified")
            return

        plays = []
        for raw_path in file_paths:
            path = self._normalize_file_path(str(raw_path))
            try:
                plays.append(read_play_file(path))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                error_msg = f"Skipping invalid play file {path}: {e}"
                self.errorOccurred.emit(error_msg)
                print(error_msg)
            except (OSError, IOError, TypeError) as e:
                error_msg = f"Skipping play file {path}: {e}"
                self.errorOccurred.emit(error_msg)
                print(error_msg)

        payload = export_plays_for_llm(plays) if for_llm else export_plays_json(plays)
        try:
            with open(output_path, "w", encoding="utf-8") as f:
                f.write(payload)
            self.exportCompleted.emit(output_path)
            print(f"Exported {len(plays)} plays to: {output_path}")
        except (OSError, IOError) as e:
            error_msg = f"Failed to export plays: {e}"
            self.errorOccurred.emit(error_msg)
            print(error_msg)
