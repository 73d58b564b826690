"""
Streamlit app for compiling call flowcharts into Bland.ai pathways
and deploying them to inbound numbers.
"""
import streamlit as st
import streamlit_mermaid as st_mermaid
import json
import os
import traceback
import logging
from typing import Dict, Any, Optional

from flowchart_model import initial_flowchart
from flowchart_validator import validate_flowchart, is_invalid_result
from flowchart_preview import flowchart_to_mermaid, pathway_to_mermaid
from pathway_assembler import DEFAULT_CONFIG, convert_flowchart_to_pathway
from pathway_to_flowchart import convert_pathway_to_flowchart
from pathway_report import (
    create_pathway_report, pathway_edges_frame, pathway_nodes_frame, variables_frame
)
from bland_client import API_KEY_ENV_VAR, BlandAPIError, BlandClient
from phone_utils import format_phone_number

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Page configuration
st.set_page_config(
    page_title="Pathway Flowchart Compiler",
    page_icon="📞",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Initialize session state
if 'flowchart_json' not in st.session_state:
    st.session_state.flowchart_json = json.dumps(initial_flowchart(), indent=2)
if 'last_pathway' not in st.session_state:
    st.session_state.last_pathway = None
if 'last_report' not in st.session_state:
    st.session_state.last_report = None
if 'flowchart_source' not in st.session_state:
    st.session_state.flowchart_source = "Custom"

# Example flowcharts
DEFAULT_FLOWCHARTS = {
    "Greeting Only": initial_flowchart(),

    "Age Screening": {
        'name': "Age Screening",
        'nodes': [
            {'id': "greet", 'type': "greetingNode",
             'data': {'text': "Hello! Thanks for calling. May I ask your age?", 'extractVariables': ["Age"]}},
            {'id': "check-age", 'type': "conditionalNode",
             'data': {'condition': "if (Age <= 65) { standard } else { senior }"}},
            {'id': "standard", 'type': "responseNode",
             'data': {'text': "You qualify for our standard plan."}},
            {'id': "senior", 'type': "responseNode",
             'data': {'text': "You qualify for our senior plan."}},
            {'id': "goodbye", 'type': "endCallNode",
             'data': {'prompt': "Thank you for calling. Goodbye!"}},
        ],
        'edges': [
            {'id': "e1", 'source': "greet", 'target': "check-age"},
            {'id': "e2", 'source': "check-age", 'target': "standard", 'sourceHandle': "true"},
            {'id': "e3", 'source': "check-age", 'target': "senior", 'sourceHandle': "false"},
            {'id': "e4", 'source': "standard", 'target': "goodbye"},
            {'id': "e5", 'source': "senior", 'target': "goodbye"},
        ],
    },

    "Support Transfer": {
        'name': "Support Transfer",
        'nodes': [
            {'id': "welcome", 'type': "greetingNode",
             'data': {'text': "Welcome to support. Are you calling about billing or a technical issue?"}},
            {'id': "choice", 'type': "customerResponseNode",
             'data': {'options': ["Billing", "Technical"], 'variableName': "issue_type"}},
            {'id': "billing", 'type': "transferNode",
             'data': {'text': "Connecting you to billing.", 'transferNumber': "(978) 783-6427"}},
            {'id': "tech", 'type': "webhookNode",
             'data': {'text': "Let me open a ticket.", 'url': "https://example.com/tickets", 'method': "post"}},
            {'id': "bye", 'type': "endCallNode", 'data': {'text': "Goodbye!"}},
        ],
        'edges': [
            {'id': "e1", 'source': "welcome", 'target': "choice"},
            {'id': "e2", 'source': "choice", 'target': "billing", 'sourceHandle': "response-0"},
            {'id': "e3", 'source': "choice", 'target': "tech", 'sourceHandle': "response-1"},
            {'id': "e4", 'source': "tech", 'target': "bye"},
        ],
    },
}

def get_api_key() -> Optional[str]:
    """Bland.ai key from the environment or Streamlit secrets"""
    api_key = os.getenv(API_KEY_ENV_VAR)
    if api_key:
        return api_key
    try:
        if "bland_api_key" in st.secrets:
            return st.secrets["bland_api_key"]
    except Exception as e:
        logger.debug(f"No Streamlit secrets available: {str(e)}")
    return None

def load_flowchart_source(source_id: str, text: str):
    """Replace the editor JSON only when the chosen example or upload changes"""
    if st.session_state.flowchart_source == source_id:
        return
    st.session_state.flowchart_source = source_id
    st.session_state.flowchart_json = text

def parse_flowchart_json(text: str) -> Optional[Dict[str, Any]]:
    """Parse editor JSON, reporting syntax errors in the page"""
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        st.error(f"Invalid JSON at line {e.lineno}, column {e.colno}: {e.msg}")
        return None

def render_mermaid_safely(mermaid_text: str):
    """Safely render Mermaid diagram with error handling"""
    try:
        st_mermaid.st_mermaid(mermaid_text, height=400)
    except Exception as e:
        st.error(f"Preview Error: {str(e)}")
        st.code(mermaid_text, language="mermaid")

def render_pathway_report(pathway: Dict[str, Any], report: Dict[str, Any]):
    """Render the compiled pathway summary"""

    st.subheader("📊 Pathway Summary")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Nodes", report['total_nodes'])
    with col2:
        st.metric("Edges", report['total_edges'])
    with col3:
        st.metric("Variables", len(report['extract_variables']))
    with col4:
        if report['deploy_ready']:
            st.success("✅ Ready to Deploy")
        else:
            st.warning("⚠️ Needs Work")

    if report['errors']:
        with st.expander("❌ Pathway Errors", expanded=True):
            for error in report['errors']:
                st.error(error)
    if report['warnings']:
        with st.expander("⚠️ Pathway Warnings", expanded=False):
            for warning in report['warnings']:
                st.warning(f"• {warning}")

    tab1, tab2, tab3 = st.tabs(["Nodes", "Edges", "Variables"])
    with tab1:
        st.dataframe(pathway_nodes_frame(pathway), use_container_width=True)
    with tab2:
        st.dataframe(pathway_edges_frame(pathway), use_container_width=True)
    with tab3:
        st.dataframe(variables_frame(pathway), use_container_width=True)

def main():
    st.title("📞 Pathway Flowchart Compiler")
    st.markdown("""
    **Turn call flowcharts into Bland.ai conversational pathways**

    ✅ Provider-safe node and edge ids
    ✅ Conditional branches folded into labeled edges
    ✅ Extraction variables collected on the start node
    ✅ One-click deploy and phone number assignment
    """)

    # Sidebar configuration
    with st.sidebar:
        st.header("⚙️ Configuration")

        api_key = get_api_key()
        if api_key:
            st.success("🔑 Bland.ai key loaded")
        else:
            api_key = st.text_input(
                "Bland.ai API Key",
                type="password",
                help=f"Or set {API_KEY_ENV_VAR} / bland_api_key in Streamlit secrets"
            )

        st.subheader("🔧 Compiler Settings")
        temperature = st.slider("Default Temperature", 0.0, 1.0, DEFAULT_CONFIG['defaultTemperature'], 0.1)
        global_prompt = st.text_area("Global Prompt", value=DEFAULT_CONFIG['globalPrompt'], height=100)
        seed_variables = st.text_input(
            "Always Extract",
            value=", ".join(DEFAULT_CONFIG['seedVariables']),
            help="Comma-separated variables added to every pathway"
        )
        show_debug = st.checkbox("Show Debug Info", value=False)

        st.divider()

        # Import from provider
        st.subheader("📥 Import Pathway")
        import_id = st.text_input("Pathway ID")
        if st.button("Import", disabled=not (api_key and import_id)):
            with st.spinner("Fetching pathway from Bland.ai..."):
                try:
                    pathway_data = BlandClient(api_key).get_pathway(import_id)
                    flowchart = convert_pathway_to_flowchart(pathway_data)
                    st.session_state.flowchart_json = json.dumps(flowchart, indent=2)
                    st.success(f"✅ Imported {len(flowchart['nodes'])} nodes")
                except BlandAPIError as e:
                    st.error(f"Import failed: {str(e)}")

    config = {
        'defaultTemperature': temperature,
        'globalPrompt': global_prompt,
        'seedVariables': [name.strip() for name in seed_variables.split(',') if name.strip()],
    }

    # Flowchart input
    col1, col2 = st.columns(2)
    with col1:
        selected_example = st.selectbox("Load Example Flowchart", ["Custom"] + list(DEFAULT_FLOWCHARTS.keys()))
    with col2:
        uploaded_file = st.file_uploader("Upload Flowchart JSON", type=['json'])

    if uploaded_file is not None:
        load_flowchart_source(f"upload:{uploaded_file.name}:{uploaded_file.size}",
                              uploaded_file.getvalue().decode('utf-8'))
    elif selected_example != "Custom":
        load_flowchart_source(f"example:{selected_example}",
                              json.dumps(DEFAULT_FLOWCHARTS[selected_example], indent=2))
    else:
        st.session_state.flowchart_source = "Custom"

    flowchart_text = st.text_area(
        "Flowchart JSON",
        value=st.session_state.flowchart_json,
        height=400,
        help="Editor export with nodes and edges"
    )
    st.session_state.flowchart_json = flowchart_text

    flowchart = parse_flowchart_json(flowchart_text) if flowchart_text.strip() else None
    if flowchart is None:
        st.info("Enter flowchart JSON above to compile a pathway.")
        return

    # Validation and preview
    validation = validate_flowchart(flowchart)
    if validation.issues:
        with st.expander(f"⚠️ {len(validation.issues)} Validation Issues", expanded=not validation.is_navigable):
            for issue in validation.issues:
                st.warning(f"• {issue}")

    if validation.is_navigable:
        st.subheader("👁️ Flowchart Preview")
        render_mermaid_safely(flowchart_to_mermaid({'nodes': validation.nodes_with_fallbacks, 'edges': validation.edges}))

    # Compilation
    name = st.text_input("Pathway Name", value=flowchart.get('name', "") if isinstance(flowchart, dict) else "")
    description = st.text_input("Pathway Description",
                                value=flowchart.get('description', "") if isinstance(flowchart, dict) else "")

    if st.button("🎯 Compile Pathway", type="primary"):
        with st.spinner("Compiling pathway..."):
            try:
                pathway = convert_flowchart_to_pathway(flowchart, name or None, description or None, config)
                if is_invalid_result(pathway):
                    st.error("❌ Flowchart cannot be compiled")
                    for issue in pathway['issues']:
                        st.write(f"• {issue}")
                    st.session_state.last_pathway = None
                else:
                    st.session_state.last_pathway = pathway
                    st.session_state.last_report = create_pathway_report(pathway)
                    st.success("✅ Pathway compiled successfully!")
            except Exception as e:
                st.error(f"Compilation Error: {str(e)}")
                if show_debug:
                    st.exception(e)
                    st.text(traceback.format_exc())

    pathway = st.session_state.last_pathway
    if not pathway:
        return

    pathway_json = json.dumps(pathway, indent=2)
    st.subheader("📤 Compiled Pathway")
    col1, col2 = st.columns(2)
    with col1:
        st.code(pathway_json, language="json")
    with col2:
        render_mermaid_safely(pathway_to_mermaid(pathway))

    st.download_button(
        "⬇️ Download Pathway JSON",
        pathway_json,
        file_name=f"{pathway['name'].replace(' ', '_').lower()}.json",
        mime="application/json"
    )

    render_pathway_report(pathway, st.session_state.last_report)

    # Deployment
    st.divider()
    st.subheader("🚀 Deploy to Bland.ai")
    col1, col2 = st.columns(2)
    with col1:
        pathway_id = st.text_input("Existing Pathway ID", help="Leave empty to create a new pathway")
    with col2:
        phone_number = st.text_input("Inbound Phone Number", help="Optional number to route to this pathway")

    if st.button("🚀 Deploy", disabled=not api_key):
        with st.spinner("Deploying pathway..."):
            try:
                result = BlandClient(api_key).deploy_flowchart(
                    flowchart,
                    pathway_id=pathway_id or None,
                    name=pathway['name'],
                    description=pathway['description'],
                    phone_number=phone_number or None,
                    config=config
                )
                st.success(f"✅ Deployed pathway {result['pathway_id']}")
                if 'assigned' in result:
                    st.success(f"📞 Assigned to {format_phone_number(phone_number)}")
                if show_debug:
                    st.json(result)
            except (BlandAPIError, ValueError) as e:
                logger.error(f"Deployment failed: {str(e)}")
                st.error(f"Deployment failed: {str(e)}")
                if show_debug and isinstance(e, BlandAPIError) and e.payload:
                    st.json(e.payload)
    if not api_key:
        st.info("Provide a Bland.ai API key in the sidebar to deploy.")

    with st.expander("ℹ️ How It Works", expanded=False):
        st.markdown("""
        **Compilation Steps:**

        1. **Validation**: Checks node and edge structure and substitutes safe fallbacks
        2. **Id Sanitizing**: Rewrites ids to letters, digits and underscores
        3. **Start Node**: Picks the greeting node, a node labeled Start, or the first node
        4. **Variables**: Collects extraction variables onto the start node
        5. **Conditions**: Folds conditional nodes into labeled edges from the start node
        6. **Completion**: Adds Default and End Call nodes when missing
        """)

if __name__ == "__main__":
    main()
