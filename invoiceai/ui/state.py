"""
Page state transitions for the Streamlit UI.

All functions take the session state mapping (st.session_state, or a plain
dict in tests) and mutate it. The home page walks through three steps:
client_selection -> invoice_upload -> data_display.
"""

from datetime import datetime, timezone
from typing import Any, MutableMapping, Optional

from invoiceai.models.client import Client
from invoiceai.models.invoice import ExtractedInvoice

STEP_CLIENT_SELECTION = "client_selection"
STEP_INVOICE_UPLOAD = "invoice_upload"
STEP_DATA_DISPLAY = "data_display"

FACING_ENVIRONMENT = "environment"
FACING_USER = "user"

DEFAULTS: dict[str, Any] = {
    "step": STEP_CLIENT_SELECTION,
    "selected_client": None,
    "extracted_data": None,
    "extraction_warnings": [],
    "current_file_name": "",
    # Camera
    "show_camera": False,
    "facing_mode": FACING_ENVIRONMENT,
    "camera_generation": 0,
    # Image source: uploaded file or camera capture
    "image_bytes": None,
    "image_mime": None,
    "image_name": None,
    "image_from_camera": False,
    # Bumped to reset the uploader and client selector widgets
    "widget_generation": 0,
    # Bumped per extraction to reset review widgets kept outside the form
    "review_generation": 0,
    # Reports
    "report_results": None,
}


def init_state(state: MutableMapping) -> None:
    """Fill in any missing keys with their defaults."""
    for key, value in DEFAULTS.items():
        if key not in state:
            state[key] = list(value) if isinstance(value, list) else value


def clear_image(state: MutableMapping) -> None:
    state["image_bytes"] = None
    state["image_mime"] = None
    state["image_name"] = None
    state["image_from_camera"] = False
    state["widget_generation"] = state.get("widget_generation", 0) + 1


def widget_key(state: MutableMapping, name: str) -> str:
    return f"{name}_{state.get('widget_generation', 0)}"


def review_key(state: MutableMapping, name: str) -> str:
    return f"review_{name}_{state.get('review_generation', 0)}"


def _clear_extraction(state: MutableMapping) -> None:
    state["extracted_data"] = None
    state["extraction_warnings"] = []
    state["current_file_name"] = ""


# Home workflow

def select_client(state: MutableMapping, client: Client) -> None:
    state["selected_client"] = client
    state["step"] = STEP_INVOICE_UPLOAD


def data_extracted(
    state: MutableMapping,
    data: ExtractedInvoice,
    file_name: str,
    warnings: Optional[list[str]] = None,
) -> None:
    state["extracted_data"] = data
    state["review_generation"] = state.get("review_generation", 0) + 1
    state["extraction_warnings"] = list(warnings or [])
    state["current_file_name"] = file_name
    state["step"] = STEP_DATA_DISPLAY


def invoice_saved(state: MutableMapping) -> None:
    """Back to the uploader for the same client."""
    _clear_extraction(state)
    clear_image(state)
    state["step"] = STEP_INVOICE_UPLOAD


def back_to_client_selection(state: MutableMapping) -> None:
    stop_camera(state)
    _clear_extraction(state)
    clear_image(state)
    state["selected_client"] = None
    state["step"] = STEP_CLIENT_SELECTION


def back_to_upload(state: MutableMapping) -> None:
    _clear_extraction(state)
    state["step"] = STEP_INVOICE_UPLOAD


# Camera lifecycle

def start_camera(state: MutableMapping, facing_mode: Optional[str] = None) -> None:
    """Open the camera. A new generation forces a fresh camera widget and stream."""
    state["facing_mode"] = facing_mode or state.get("facing_mode", FACING_ENVIRONMENT)
    state["camera_generation"] = state.get("camera_generation", 0) + 1
    state["show_camera"] = True


def stop_camera(state: MutableMapping) -> None:
    state["show_camera"] = False


def toggle_camera(state: MutableMapping) -> None:
    if state.get("show_camera"):
        stop_camera(state)
    else:
        start_camera(state)


def switch_camera(state: MutableMapping) -> None:
    """Restart the camera facing the other way. No-op while the camera is closed."""
    if not state.get("show_camera"):
        return
    current = state.get("facing_mode", FACING_ENVIRONMENT)
    start_camera(state, FACING_USER if current == FACING_ENVIRONMENT else FACING_ENVIRONMENT)


def camera_widget_key(state: MutableMapping) -> str:
    return f"camera_{state.get('facing_mode', FACING_ENVIRONMENT)}_{state.get('camera_generation', 0)}"


def capture_file_name(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"captura-webcam-{now.isoformat()}.jpg"


def photo_captured(
    state: MutableMapping,
    content: bytes,
    mime_type: str = "image/jpeg",
    now: Optional[datetime] = None,
) -> None:
    """Use a camera capture as the image source and close the camera."""
    # Re-key the uploader so a previously picked file does not come back
    clear_image(state)
    state["image_bytes"] = content
    state["image_mime"] = mime_type
    state["image_name"] = capture_file_name(now)
    state["image_from_camera"] = True
    stop_camera(state)


def file_selected(state: MutableMapping, content: bytes, mime_type: str, file_name: str) -> None:
    """Use an uploaded file as the image source. Closes the camera."""
    stop_camera(state)
    state["image_bytes"] = content
    state["image_mime"] = mime_type
    state["image_name"] = file_name
    state["image_from_camera"] = False


def has_image(state: MutableMapping) -> bool:
    return bool(state.get("image_bytes"))
