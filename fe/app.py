# fe/app.py
import streamlit as st
from dotenv import load_dotenv

from handwriting_utils.client import ApiClient, ApiError
from handwriting_utils.export import PDF_FILENAME, TEXT_FILENAME, pdf_export, text_export
from handwriting_utils.workflow import LANGUAGES, Workflow, WorkflowError

# Load environment variables from .env
load_dotenv()

IMAGE_TYPES = ["png", "jpg", "jpeg", "webp", "gif", "bmp", "tif", "tiff"]

# ============================================================
# Page config + small CSS
# ============================================================

st.set_page_config(layout="centered", page_title="Handwriting Reader", page_icon="✍️")

st.markdown(
    """
    <style>
    .block-container{max-width:960px; padding:1rem 2rem;}
    </style>
    """,
    unsafe_allow_html=True,
)

# ============================================================
# Default session_state
# ============================================================

st.session_state.setdefault("workflow", Workflow())
st.session_state.setdefault("transcription_box", "")
st.session_state.setdefault("file_id", None)

wf: Workflow = st.session_state["workflow"]
api = ApiClient()

# The text area is the source of truth for the transcription between reruns
wf.edit_transcription(st.session_state["transcription_box"])

# ============================================================
# Title
# ============================================================

st.caption("HANDWRITING INTELLIGENCE")
st.title("Transform handwritten notes into digital text")
st.markdown(
    "Upload a scan or photo, let the model clean and read it, then export the results instantly."
)

# ============================================================
# Upload + language
# ============================================================

uploaded = st.file_uploader("Upload handwritten document", type=IMAGE_TYPES, key="uploader")

if uploaded is None:
    if wf.file is not None:
        wf.clear_file()
        st.session_state["file_id"] = None
else:
    file_id = getattr(uploaded, "file_id", None) or f"{uploaded.name}:{uploaded.size}"
    if file_id != st.session_state["file_id"]:
        wf.select_file(uploaded.name, uploaded.getvalue(), uploaded.type or "application/octet-stream")
        st.session_state["file_id"] = file_id

st.write(wf.file_label)

labels = [label for label, _ in LANGUAGES]
codes = [code for _, code in LANGUAGES]
choice = st.selectbox("Language", labels, key="language_label")
wf.language = codes[labels.index(choice)]

# ============================================================
# Actions: extract + exports
# ============================================================

c1, c2, c3 = st.columns([2, 1, 1])
with c1:
    if st.button(
        "Processing..." if wf.extracting else "Extract text",
        disabled=not wf.can_extract,
        type="primary",
        key="btn_extract",
    ):
        try:
            wf.begin_extract()
        except WorkflowError:
            # message already recorded on the workflow
            pass
        st.rerun()
with c2:
    st.download_button(
        "Export .txt",
        data=text_export(wf.transcription),
        file_name=TEXT_FILENAME,
        mime="text/plain",
        disabled=not wf.can_export,
    )
with c3:
    st.download_button(
        "Export .pdf",
        data=pdf_export(wf.transcription) if wf.can_export else b"",
        file_name=PDF_FILENAME,
        mime="application/pdf",
        disabled=not wf.can_export,
    )

# ============================================================
# Run extraction (when stage == extracting)
# ============================================================

if wf.extracting and wf.file is not None:
    with st.spinner("Processing handwriting..."):
        try:
            text = api.extract(wf.file.data, wf.file.name, wf.file.mime, wf.language)
            wf.finish_extract(text)
            st.session_state["transcription_box"] = wf.transcription
        except ApiError as e:
            wf.fail(str(e) or "Unexpected error during extraction.")
    st.rerun()

if wf.error:
    st.error(wf.error)

if wf.preview_uri:
    with st.expander("Preview", expanded=True):
        st.image(wf.preview_uri)

# ============================================================
# Extracted text (editable) + summarize / rewrite
# ============================================================

st.markdown("---")
st.subheader("Extracted text")
st.text_area(
    "Extracted text",
    key="transcription_box",
    height=300,
    placeholder="The extracted text will appear here after processing.",
    label_visibility="collapsed",
)

b1, b2 = st.columns(2)
for column, mode, idle_label, busy_label in (
    (b1, "summarize", "Summarize Text", "Summarizing..."),
    (b2, "rewrite", "Rewrite Text", "Rewriting..."),
):
    with column:
        label = busy_label if wf.transforming and wf.transform_mode == mode else idle_label
        if st.button(label, disabled=not wf.can_transform, key=f"btn_{mode}"):
            try:
                wf.begin_transform(mode)
            except WorkflowError:
                # message already recorded on the workflow
                pass
            st.rerun()

# ============================================================
# Run transform (when stage == transforming)
# ============================================================

if wf.transforming:
    with st.spinner(f"{wf.transform_mode.capitalize()}..."):
        try:
            wf.finish_transform(api.transform(wf.transcription, wf.transform_mode))
        except ApiError as e:
            wf.fail(str(e) or "Unexpected error while processing text.")
    st.rerun()

if wf.transform_result:
    st.markdown("---")
    st.subheader("Processed output")
    st.markdown(wf.transform_result)

st.markdown("---")
st.caption(
    "A Mistral multimodal model powers handwritten text recognition. "
    "Configure `MISTRAL_API_KEY` for the API service."
)
