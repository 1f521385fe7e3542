"""
State of one front-end session.

The Streamlit page keeps a single `Workflow` in `st.session_state` and asks it
which controls are enabled. Only one extraction and one transform can be
outstanding at a time; there is no cancellation.
"""
import base64
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

LANGUAGES = [
    ("Auto Detect", "auto"),
    ("English", "en"),
    ("Hindi", "hi"),
    ("Marathi", "mr"),
    ("Spanish", "es"),
]

MODES = ("summarize", "rewrite")

NO_FILE_MESSAGE = "Please select an image before extracting."
NO_TEXT_MESSAGE = "Extract text first or enter content to process."


class Stage(str, Enum):
    IDLE = "idle"
    FILE_SELECTED = "file-selected"
    EXTRACTING = "extracting"
    EXTRACTED = "extracted"
    TRANSFORMING = "transforming"
    TRANSFORMED = "transformed"
    ERROR = "error"


class WorkflowError(Exception):
    """Action not allowed in the current stage."""


@dataclass
class SelectedFile:
    name: str
    data: bytes
    mime: str

    @property
    def label(self) -> str:
        return f"{self.name} ({math.ceil(len(self.data) / 1024)} KB)"


def build_data_uri(raw: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(raw).decode()}"


@dataclass
class Workflow:
    stage: Stage = Stage.IDLE
    language: str = "auto"
    file: Optional[SelectedFile] = None
    preview_uri: Optional[str] = None
    transcription: str = ""
    transform_result: str = ""
    transform_mode: Optional[str] = None
    error: str = ""

    # ---- file selection / preview ----

    @property
    def file_label(self) -> str:
        return self.file.label if self.file else "No file selected"

    def select_file(self, name: str, data: bytes, mime: str) -> None:
        """Replace the current file; the old preview is dropped with it."""
        self.release_preview()
        self.file = SelectedFile(name=name, data=data, mime=mime)
        self.preview_uri = build_data_uri(data, mime)
        self.error = ""
        if not self.busy:
            self.stage = Stage.FILE_SELECTED

    def clear_file(self) -> None:
        self.release_preview()
        self.file = None
        if not self.busy:
            self.stage = Stage.IDLE

    def release_preview(self) -> None:
        self.preview_uri = None

    # ---- enablement ----

    @property
    def extracting(self) -> bool:
        return self.stage == Stage.EXTRACTING

    @property
    def transforming(self) -> bool:
        return self.stage == Stage.TRANSFORMING

    @property
    def busy(self) -> bool:
        return self.extracting or self.transforming

    @property
    def can_extract(self) -> bool:
        return self.file is not None and not self.extracting

    @property
    def can_transform(self) -> bool:
        return bool(self.transcription) and not self.transforming

    @property
    def can_export(self) -> bool:
        return bool(self.transcription)

    # ---- extraction ----

    def begin_extract(self) -> None:
        if self.file is None:
            self.fail(NO_FILE_MESSAGE)
            raise WorkflowError(NO_FILE_MESSAGE)
        if self.extracting:
            raise WorkflowError("An extraction is already running")
        self.error = ""
        self.stage = Stage.EXTRACTING

    def finish_extract(self, text: str) -> None:
        """New transcription replaces the old one and invalidates the transform."""
        self.transcription = text or ""
        self.transform_result = ""
        self.transform_mode = None
        self.stage = Stage.EXTRACTED

    # ---- editing ----

    def edit_transcription(self, text: str) -> None:
        self.transcription = text

    # ---- transform ----

    def begin_transform(self, mode: str) -> None:
        if mode not in MODES:
            raise WorkflowError(f"Unknown mode: {mode}")
        if not self.transcription.strip():
            self.fail(NO_TEXT_MESSAGE)
            raise WorkflowError(NO_TEXT_MESSAGE)
        if self.transforming:
            raise WorkflowError("A transform is already running")
        self.error = ""
        self.transform_mode = mode
        self.stage = Stage.TRANSFORMING

    def finish_transform(self, text: str) -> None:
        self.transform_result = text or ""
        self.transform_mode = None
        self.stage = Stage.TRANSFORMED

    # ---- errors ----

    def fail(self, message: str) -> None:
        self.error = message
        self.transform_mode = None
        self.stage = Stage.ERROR
