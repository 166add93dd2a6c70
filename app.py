import gradio as gr
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

# --- SETUP PATHS ---
sys.path.insert(0, str(Path(__file__).parent))

# --- IMPORTS ---
from core.exceptions import ExtractionError, WebCraftError
from core.schemas import DEFAULT_FRAMEWORK, FRAMEWORKS, DesignInputCreate
from core.settings import settings
from services.assistants import AssistantRegistry
from services.code_generation_service import CodeGenerationRequest
from services.filesystem_service import FileNode, file_paths, folder_paths, format_size
from services.project_service import InMemoryProjectStore, ProjectService, seed_sample_data
from services.tree_view_service import TreeViewModel, render_visible

# --- LOGGING SETUP ---
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

for lib in ["httpx", "httpcore"]:
    logging.getLogger(lib).setLevel(logging.WARNING)

# --- APP STATE ---
store = InMemoryProjectStore()
if settings.SEED_SAMPLE_DATA:
    seed_sample_data(store)
projects = ProjectService(store)
assistants = AssistantRegistry(projects)

SAMPLE_BANNER = "⚠️ **Sample structure.** No files could be recognized in this project, this is not your code."
EXTRACTION_MESSAGES = {
    "corrupt": "The archive is damaged or unreadable.",
    "too_large": f"The archive expands past {format_size(settings.MAX_ARCHIVE_UNCOMPRESSED_BYTES)}.",
    "unsupported_format": "Only ZIP and tar archives are supported.",
}


# --- HELPER FUNCTIONS ---
def error_message(e: Exception) -> str:
    """Turn service errors into the one-line text shown in status banners"""
    if isinstance(e, ExtractionError):
        return f"❌ {EXTRACTION_MESSAGES.get(e.reason, str(e))}"
    if isinstance(e, ValidationError):
        return "❌ " + "; ".join(err["msg"] for err in e.errors())
    return f"❌ {e}"


def project_choices():
    return [(f"{p.name} · {p.framework}", p.id) for p in projects.list_projects()]


def projects_table():
    rows = []
    for p in projects.list_projects():
        if p.codebase is None:
            codebase = "—"
        elif p.codebase.kind == "archive":
            codebase = f"archive ({p.codebase.file_count} files)"
        else:
            codebase = "text"
        rows.append([p.name, p.framework, f"{p.progress}%", codebase, p.updated_at.strftime("%Y-%m-%d %H:%M")])
    return rows


def render_view(view: TreeViewModel) -> str:
    if view is None:
        return ""
    body = render_visible(view.visible_nodes())
    if not body and view.state.filter_text:
        return f"No files match '{view.state.filter_text}'"
    return body


def read_upload(path):
    if not path:
        return None, None
    upload = Path(path)
    return upload.read_bytes(), upload.name


# -- TAB 1 : PROJECTS ---

def create_project_ui(name, description, framework, upload_path):
    try:
        data, filename = read_upload(upload_path)
        project = projects.create_project(name, description, framework, data, filename)
    except (WebCraftError, ValidationError) as e:
        logger.warning(f"Project creation rejected: {e}")
        return error_message(e), gr.update(), projects_table()
    except OSError as e:
        logger.error(f"Could not read upload: {e}")
        return f"❌ Could not read upload: {e}", gr.update(), projects_table()
    except Exception as e:
        logger.error(f"Project creation error: {e}")
        return f"❌ Error: {e}", gr.update(), projects_table()

    if project.codebase is None:
        status = f"✅ Created **{project.name}**"
    elif project.codebase.kind == "archive":
        status = f"✅ Created **{project.name}** with {project.codebase.file_count} files"
    else:
        status = f"✅ Created **{project.name}** from a text upload"
    return status, gr.update(choices=project_choices(), value=project.id), projects_table()


# -- TAB 2 : EXPLORER ---

def load_explorer(project_id):
    """Rebuild the tree for the selected project and reset the explorer"""
    empty = (None, "", gr.update(visible=False), gr.update(choices=[], value=None), gr.update(choices=[], value=None), "")
    if not project_id:
        return empty
    try:
        tree = projects.get_tree(project_id)
    except WebCraftError as e:
        logger.error(f"Tree build failed: {e}")
        return (None, "", gr.update(visible=True, value=error_message(e)),
                gr.update(choices=[], value=None), gr.update(choices=[], value=None), "")

    view = TreeViewModel(tree.nodes)
    banner = gr.update(visible=tree.is_sample, value=SAMPLE_BANNER)
    folders = folder_paths(tree.nodes)
    files = file_paths(tree.nodes)
    return (
        view,
        render_view(view),
        banner,
        gr.update(choices=folders, value=folders[0] if folders else None),
        gr.update(choices=files, value=None),
        "",
    )


def filter_tree(view, text):
    if view is None:
        return view, ""
    view.set_filter(text)
    return view, render_view(view)


def toggle_folder_ui(view, path):
    if view is None or not path:
        return view, render_view(view)
    view.toggle_folder(path)
    return view, render_view(view)


def expand_all_ui(view):
    if view is None:
        return view, ""
    view.expand_all()
    return view, render_view(view)


def collapse_all_ui(view):
    if view is None:
        return view, ""
    view.collapse_all()
    return view, render_view(view)


def select_file_ui(view, project_id, path):
    if view is None or not path:
        return view, render_view(view), ""
    view.select_file(path)
    node = view.selected_node()
    preview = projects.read_file(project_id, path) if project_id else None
    if preview is None:
        details = []
        if isinstance(node, FileNode):
            details = [d for d in (format_size(node.size_estimate), node.last_modified_label) if d]
        preview = f"// {path}\n// content not available" + (f" ({', '.join(details)})" if details else "")
    return view, render_view(view), preview


def analyze_codebase_ui(project_id, progress=gr.Progress()):
    if not project_id:
        return "⚠️ Select a project first."
    try:
        progress(0.2, desc="📦 Collecting codebase...")
        context = projects.codebase_context(project_id)
        progress(0.5, desc="🤖 Analyzing components...")
        analysis = assistants.analyzer().analyze(context)
    except (WebCraftError, RuntimeError) as e:
        logger.error(f"Codebase analysis failed: {e}")
        return error_message(e)
    except Exception as e:
        logger.error(f"Codebase analysis error: {e}")
        return f"❌ Error: {e}"

    progress(1.0, desc="✅ Complete!")
    lines = [f"### Framework: {analysis.framework}", "", "**Components**"]
    lines += [f"- {c}" for c in analysis.components] or ["- none detected"]
    if analysis.suggestions:
        lines += ["", "**Suggestions**"] + [f"- {s}" for s in analysis.suggestions]
    return "\n".join(lines)


# -- TAB 3 : DESIGN & GENERATE ---

def generate_code_ui(project_id, description, figma_link, components_text, screenshot_paths, progress=gr.Progress()):
    components = [c.strip() for c in (components_text or "").split(",") if c.strip()]
    try:
        sources = projects.find_component_sources(project_id, components) if project_id else {}
        existing = "\n\n".join(f"// {path}\n{code}" for path, code in sources.items()) or None
        request = CodeGenerationRequest(
            description=description,
            target_components=components,
            figma_link=figma_link or None,
            existing_code=existing,
        )

        analyses = []
        if screenshot_paths:
            progress(0.2, desc="🎨 Analyzing design images...")
            uploads = [Path(p).read_bytes() for p in screenshot_paths]
            result = assistants.design().analyze_uploads(uploads)
            request = request.model_copy(update={"screenshots": result.screenshots})
            analyses = result.analyses

        if project_id:
            projects.create_design_input(DesignInputCreate(
                project_id=project_id,
                description=request.description,
                figma_link=request.figma_link,
                screenshots=request.screenshots,
                target_components=request.target_components,
            ))

        progress(0.6, desc="⚙️ Generating code...")
        response = assistants.generator().generate(request)
    except (WebCraftError, ValidationError, RuntimeError) as e:
        logger.error(f"Code generation failed: {e}")
        return error_message(e), "", ""
    except OSError as e:
        return f"❌ Could not read screenshot: {e}", "", ""
    except Exception as e:
        logger.error(f"Code generation error: {e}")
        return f"❌ Error: {e}", "", ""

    progress(1.0, desc="✅ Complete!")
    notes = [response.explanation or ""]
    if analyses:
        notes += ["", "**Design notes**"] + [f"- {a}" for a in analyses]
    if response.dependencies:
        notes += ["", "**Dependencies**"] + [f"- `{d}`" for d in response.dependencies]
    if response.questions:
        notes += ["", "**Open questions**"] + [f"- {q}" for q in response.questions]
    return "✅ Code generated", response.updated_code, "\n".join(notes)


# -- TAB 4 : CHAT ---

def load_chat(project_id):
    if not project_id:
        return []
    conversation = projects.get_conversation(project_id)
    return [{"role": m.role, "content": m.content} for m in conversation.messages]


def chat_ui(project_id, message, history):
    if not message or not message.strip():
        return history, ""
    if not project_id:
        return history + [{"role": "assistant", "content": "⚠️ Select a project first."}], ""
    try:
        context = projects.codebase_context(project_id)
        messages = assistants.chat().send(project_id, message.strip(), context=context)
    except (WebCraftError, RuntimeError) as e:
        logger.error(f"Chat failed: {e}")
        return history + [
            {"role": "user", "content": message},
            {"role": "assistant", "content": error_message(e)},
        ], message
    except Exception as e:
        logger.error(f"Chat error: {e}")
        return history + [
            {"role": "user", "content": message},
            {"role": "assistant", "content": f"❌ Error: {e}"},
        ], message
    return [{"role": m.role, "content": m.content} for m in messages], ""


# --- THEME ---
webcraft_theme = gr.themes.Soft(
    primary_hue="orange",
    secondary_hue="slate",
    neutral_hue="slate",
    spacing_size="md",
    radius_size="md",
).set(
    body_background_fill="#faf8f5",
    body_background_fill_dark="#1a1816",
    background_fill_primary="#ffffff",
    background_fill_primary_dark="#252220",
    border_color_primary="#e8e4dd",
    border_color_primary_dark="#3d3935",
)

webcraft_css = """
.gradio-container {
    font-family: 'Inter', sans-serif;
    max-width: 1400px !important;
}

.tree-view textarea {
    font-family: 'JetBrains Mono', monospace !important;
    font-size: 0.85rem !important;
}

.banner {
    padding: 0.75rem 1rem;
    border-radius: 8px;
    background: #fff8e6;
    border: 1px solid #ffd27a;
}
"""


# --- GRADIO INTERFACE ---
with gr.Blocks(title=f"{settings.APP_NAME} - Build websites with AI", fill_height=True) as demo:

    gr.Markdown(f"# {settings.APP_NAME}\nUpload a codebase, explore it, and generate components from designs.")

    with gr.Row():
        project_selector = gr.Dropdown(
            choices=project_choices(),
            value=None,
            label="📁 Project",
            interactive=True,
            scale=3,
        )
        refresh_btn = gr.Button("🔄 Refresh", scale=1)

    explorer_view = gr.State(None)

    with gr.Tabs():

        # TAB 1: PROJECTS
        with gr.Tab("📁 Projects", id=0):
            with gr.Row():
                with gr.Column(scale=1):
                    project_name = gr.Textbox(label="Project name", placeholder="My Website")
                    project_description = gr.Textbox(label="Description", lines=3)
                    project_framework = gr.Dropdown(choices=list(FRAMEWORKS), value=DEFAULT_FRAMEWORK, label="Framework")
                    project_upload = gr.File(
                        label="Codebase (ZIP, tar or text file)",
                        type="filepath",
                    )
                    create_btn = gr.Button("✨ Create Project", variant="primary")
                    create_status = gr.Markdown()
                with gr.Column(scale=2):
                    project_list = gr.Dataframe(
                        headers=["Name", "Framework", "Progress", "Codebase", "Updated"],
                        value=projects_table(),
                        interactive=False,
                    )

            create_btn.click(
                fn=create_project_ui,
                inputs=[project_name, project_description, project_framework, project_upload],
                outputs=[create_status, project_selector, project_list],
            )

        # TAB 2: EXPLORER
        with gr.Tab("🗂️ Explorer", id=1):
            sample_banner = gr.Markdown(visible=False, elem_classes=["banner"])
            with gr.Row():
                with gr.Column(scale=1):
                    filter_box = gr.Textbox(label="🔍 Filter files", placeholder="header")
                    folder_choice = gr.Dropdown(label="Folder", choices=[], interactive=True)
                    with gr.Row():
                        toggle_btn = gr.Button("Open / Close")
                        expand_btn = gr.Button("Expand all")
                        collapse_btn = gr.Button("Collapse all")
                    file_choice = gr.Dropdown(label="File", choices=[], interactive=True)
                    tree_output = gr.Textbox(label="Files", lines=20, interactive=False, elem_classes=["tree-view"])
                with gr.Column(scale=2):
                    file_preview = gr.Code(label="Preview", lines=20, interactive=False)
                    analyze_btn = gr.Button("🤖 Analyze Codebase")
                    analysis_output = gr.Markdown()

            filter_box.change(fn=filter_tree, inputs=[explorer_view, filter_box], outputs=[explorer_view, tree_output])
            toggle_btn.click(fn=toggle_folder_ui, inputs=[explorer_view, folder_choice], outputs=[explorer_view, tree_output])
            expand_btn.click(fn=expand_all_ui, inputs=explorer_view, outputs=[explorer_view, tree_output])
            collapse_btn.click(fn=collapse_all_ui, inputs=explorer_view, outputs=[explorer_view, tree_output])
            file_choice.change(
                fn=select_file_ui,
                inputs=[explorer_view, project_selector, file_choice],
                outputs=[explorer_view, tree_output, file_preview],
            )
            analyze_btn.click(fn=analyze_codebase_ui, inputs=project_selector, outputs=analysis_output)

        # TAB 3: DESIGN & GENERATE
        with gr.Tab("🎨 Design & Generate", id=2):
            with gr.Row():
                with gr.Column(scale=1):
                    design_description = gr.Textbox(label="What should change?", lines=4)
                    design_figma = gr.Textbox(label="Figma link (optional)")
                    design_components = gr.Textbox(label="Target components", placeholder="Header, Navigation")
                    design_screenshots = gr.File(
                        label=f"Screenshots (up to {settings.MAX_SCREENSHOTS})",
                        file_count="multiple",
                        file_types=["image"],
                        type="filepath",
                    )
                    generate_btn = gr.Button("⚙️ Generate Code", variant="primary")
                    generate_status = gr.Markdown()
                with gr.Column(scale=2):
                    generated_code = gr.Code(label="Updated code", language="javascript", lines=25)
                    generated_notes = gr.Markdown()

            generate_btn.click(
                fn=generate_code_ui,
                inputs=[project_selector, design_description, design_figma, design_components, design_screenshots],
                outputs=[generate_status, generated_code, generated_notes],
            )

        # TAB 4: CHAT
        with gr.Tab("💬 Chat", id=3):
            chatbot = gr.Chatbot(height=480)
            with gr.Row():
                chat_input = gr.Textbox(placeholder="Ask about your project...", show_label=False, scale=4)
                send_btn = gr.Button("Send", variant="primary", scale=1)

            send_btn.click(fn=chat_ui, inputs=[project_selector, chat_input, chatbot], outputs=[chatbot, chat_input])
            chat_input.submit(fn=chat_ui, inputs=[project_selector, chat_input, chatbot], outputs=[chatbot, chat_input])

    project_selector.change(
        fn=load_explorer,
        inputs=project_selector,
        outputs=[explorer_view, tree_output, sample_banner, folder_choice, file_choice, file_preview],
    ).then(fn=load_chat, inputs=project_selector, outputs=chatbot)

    refresh_btn.click(
        fn=lambda: (gr.update(choices=project_choices()), projects_table()),
        outputs=[project_selector, project_list],
    )


if __name__ == "__main__":
    demo.launch(
        server_name=settings.HOST,
        server_port=settings.PORT,
        share=False,
        theme=webcraft_theme,
        css=webcraft_css,
    )
