"""
InvoiceAI - Main Streamlit UI

Capture invoices with a vision LLM and keep them per client.

Features:
- Client selection and management (DNI keyed)
- Invoice upload or camera capture
- Vision extraction (Ollama, LM Studio, Gemini)
- Editable data review
- Local storage with DNI / date range reports
- Excel export of reports
"""

import logging
import sys
from pathlib import Path

import streamlit as st

# Add package directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from invoiceai.config import LLMProvider, get_config, update_config, validate_system_requirements
from invoiceai.storage import create_stores
from invoiceai.ui import state as page_state
from invoiceai.ui.clients import render_clients_page
from invoiceai.ui.reports import render_reports_page
from invoiceai.ui.upload import render_home

# Configure logging
logging.basicConfig(
    level=get_config().log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

PAGES = {
    "upload": "📄 Upload Invoice",
    "clients": "👥 Clients",
    "reports": "🔎 View Reports",
}

PROVIDER_NAMES = {
    LLMProvider.OLLAMA: "Ollama (Local)",
    LLMProvider.LM_STUDIO: "LM Studio (Local)",
    LLMProvider.GEMINI: "Gemini (Cloud)",
}


def init_session_state():
    """Initialize Streamlit session state."""
    if "config" not in st.session_state:
        st.session_state.config = get_config()

    if "system_validated" not in st.session_state:
        st.session_state.system_validated = False

    if "validation_results" not in st.session_state:
        st.session_state.validation_results = None

    page_state.init_state(st.session_state)


def validate_system():
    """Validate system requirements on startup."""
    if not st.session_state.system_validated:
        with st.spinner("Checking AI providers and storage..."):
            results = validate_system_requirements(st.session_state.config)
            st.session_state.validation_results = results
            st.session_state.system_validated = True

    return st.session_state.validation_results


def show_validation_status():
    """Display blocking problems found at startup."""
    results = st.session_state.validation_results
    if not results:
        return

    if not results["storage"]["writable"]:
        st.error(f"⚠️ {results['storage']['message']}")

    if not (
        results["ollama"]["available"]
        or results["lm_studio"]["available"]
        or results["gemini"]["configured"]
    ):
        st.warning(
            "⚠️ No AI provider available. Start Ollama or LM Studio with a vision model, "
            "or set GEMINI_API_KEY."
        )


def render_provider_settings():
    """Provider selection and provider-specific overrides."""
    config = st.session_state.config
    results = st.session_state.validation_results or {}

    st.subheader("AI Provider")
    all_providers = list(LLMProvider)
    selected_provider = st.selectbox(
        "Select Provider",
        options=all_providers,
        index=all_providers.index(config.llm_provider),
        format_func=lambda p: PROVIDER_NAMES.get(p, p.value),
        key="provider_selection",
    )
    st.session_state.selected_provider = selected_provider
    update_config(llm_provider=selected_provider)

    if selected_provider == LLMProvider.OLLAMA:
        if results.get("ollama", {}).get("available"):
            st.success("✅ Ollama is running")
        else:
            st.warning("⚠️ Ollama not running. Start with: `ollama serve`")
        config.ollama.base_url = st.text_input("Ollama URL", value=config.ollama.base_url)
        config.ollama.vision_model = st.text_input(
            "Vision Model",
            value=config.ollama.vision_model,
            help="e.g. llava:13b, llama3.2-vision",
        )

    elif selected_provider == LLMProvider.LM_STUDIO:
        if results.get("lm_studio", {}).get("available"):
            st.success("✅ LM Studio is running")
        else:
            st.warning("⚠️ LM Studio not running. Start the local server.")
        config.lm_studio.base_url = st.text_input("LM Studio URL", value=config.lm_studio.base_url)
        models = results.get("lm_studio", {}).get("models") or []
        if models:
            current = config.lm_studio.vision_model
            config.lm_studio.vision_model = st.selectbox(
                "Vision Model",
                options=models,
                index=models.index(current) if current in models else 0,
            )
        else:
            config.lm_studio.vision_model = st.text_input("Vision Model", value=config.lm_studio.vision_model)

    elif selected_provider == LLMProvider.GEMINI:
        if results.get("gemini", {}).get("configured"):
            st.success("✅ Gemini API configured")
        else:
            st.warning(f"⚠️ {results.get('gemini', {}).get('message', 'Gemini API key not set')}")
        config.gemini.api_key = st.text_input("API Key", value=config.gemini.api_key, type="password")
        config.gemini.model = st.text_input("Model", value=config.gemini.model)


def render_sidebar() -> str:
    """Render the navigation and settings sidebar. Returns the selected page."""
    with st.sidebar:
        st.title("🤖 InvoiceAI")

        page = st.radio(
            "Navigation",
            options=list(PAGES),
            format_func=lambda key: PAGES[key],
            key="page",
            label_visibility="collapsed",
        )

        st.divider()
        render_provider_settings()

        st.divider()
        st.subheader("System Status")

        if st.button("🔄 Refresh Status"):
            st.session_state.system_validated = False
            st.rerun()

        storage = (st.session_state.validation_results or {}).get("storage", {})
        if storage.get("writable"):
            st.caption(f"💾 Data stored in `{storage.get('path')}`")
        else:
            st.error("❌ Storage not writable")

    return page


def main():
    """Main application entry point."""
    st.set_page_config(
        page_title="InvoiceAI",
        page_icon="🤖",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    init_session_state()

    validate_system()
    show_validation_status()

    page = render_sidebar()

    config = st.session_state.config
    client_store, invoice_store = create_stores(config)

    if page == "upload":
        render_home(st.session_state, client_store, invoice_store, config)
    elif page == "clients":
        render_clients_page(st.session_state, client_store, invoice_store)
    elif page == "reports":
        render_reports_page(st.session_state, invoice_store, config)


if __name__ == "__main__":
    main()
