import sys
import json
import asyncio
import logging
from pathlib import Path
from typing import List

from mcp.server.fastmcp import FastMCP

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from core.exceptions import WebCraftError
from core.schemas import DEFAULT_FRAMEWORK
from core.settings import settings
from services.assistants import AssistantRegistry
from services.code_generation_service import CodeGenerationRequest
from services.filesystem_service import TreeFormatter, tree_to_dict
from services.project_service import InMemoryProjectStore, ProjectService, seed_sample_data
from services.tree_view_service import TreeViewModel, render_visible

# --- LOGGING SETUP ---
# stdout belongs to the MCP protocol
logging.basicConfig(
    level=logging.INFO,
    stream=sys.stderr,
    format='%(message)s'
)

for lib in ["httpx", "httpcore", "asyncio"]:
    logging.getLogger(lib).setLevel(logging.WARNING)

mcp = FastMCP("WebCraftAI", dependencies=["langchain-openai", "langchain-core"])

store = InMemoryProjectStore()
if settings.SEED_SAMPLE_DATA:
    seed_sample_data(store)
projects = ProjectService(store)
assistants = AssistantRegistry(projects)


@mcp.tool()
def list_projects() -> str:
    """List all projects with their framework and whether a codebase was uploaded."""
    rows = [
        {
            "id": p.id,
            "name": p.name,
            "framework": p.framework,
            "progress": p.progress,
            "codebase": p.codebase.kind if p.codebase else None,
        }
        for p in projects.list_projects()
    ]
    return json.dumps(rows, indent=2)


@mcp.tool()
async def create_project(
    name: str,
    upload_path: str = "",
    description: str = "",
    framework: str = DEFAULT_FRAMEWORK,
) -> str:
    """
    Create a project, optionally from a local ZIP / tar / text file.
    Extraction runs in a worker thread.
    """
    try:
        upload = None
        upload_name = None
        if upload_path:
            path = Path(upload_path).expanduser()
            if not path.is_file():
                return f"❌ File not found: {upload_path}"
            upload = await asyncio.to_thread(path.read_bytes)
            upload_name = path.name

        project = await asyncio.to_thread(
            projects.create_project,
            name,
            description,
            framework,
            upload,
            upload_name,
        )
        files = project.codebase.file_count if project.codebase else 0
        logging.info(f"✓ Created project {project.id} ({files} files)")
        return json.dumps({"id": project.id, "name": project.name, "files": files})
    except WebCraftError as e:
        logging.warning(f"⚠️ Project creation rejected: {e}")
        return f"❌ {e}"
    except ValueError as e:
        return f"❌ Invalid project data: {e}"


@mcp.tool()
async def get_project_tree(project_id: str, filter_text: str = "", style: str = "tree") -> str:
    """
    Show the reconstructed file tree of a project.

    Args:
        project_id: Project id
        filter_text: Case-insensitive name filter
        style: "tree" (text) or "json"
    """
    try:
        tree = await asyncio.to_thread(projects.get_tree, project_id)
    except WebCraftError as e:
        logging.error(f"❌ Tree build failed: {e}")
        return f"❌ {e}"

    label = "⚠️ Sample structure (no codebase found)\n" if tree.is_sample else ""

    if style == "json":
        return json.dumps({"source": tree.source, "nodes": tree_to_dict(tree.nodes)}, indent=2)

    if filter_text:
        view = TreeViewModel(tree.nodes)
        view.set_filter(filter_text)
        body = render_visible(view.visible_nodes())
        return label + (body or f"No files match '{filter_text}'")

    return label + TreeFormatter().format(tree.nodes)


@mcp.tool()
def read_project_file(project_id: str, path: str) -> str:
    """Return the content of one file from an uploaded archive."""
    try:
        content = projects.read_file(project_id, path)
    except WebCraftError as e:
        return f"❌ {e}"
    if content is None:
        return f"❌ No file '{path}' in project {project_id}"
    return content


@mcp.tool()
def generate_component_code(
    project_id: str,
    description: str,
    target_components: List[str],
    figma_link: str = "",
) -> str:
    """
    Generate updated component code from a natural-language request.
    Matching files from the project's codebase are sent as existing code.
    """
    try:
        sources = projects.find_component_sources(project_id, target_components)
        existing = "\n\n".join(f"// {path}\n{code}" for path, code in sources.items()) or None

        request = CodeGenerationRequest(
            description=description,
            target_components=target_components,
            figma_link=figma_link or None,
            existing_code=existing,
        )
        result = assistants.generator().generate(request)
        logging.info("✓ Code generated successfully")
        return result.model_dump_json(indent=2)
    except WebCraftError as e:
        logging.error(f"❌ Code generation failed: {e}")
        return f"❌ {e}"
    except ValueError as e:
        return f"❌ Invalid request: {e}"
    except RuntimeError as e:
        # provider not configured
        return f"❌ {e}"


@mcp.tool()
def chat(project_id: str, message: str) -> str:
    """Send a chat message in the context of a project and get the reply."""
    try:
        context = projects.codebase_context(project_id)
        messages = assistants.chat().send(project_id, message, context=context)
        return messages[-1].content
    except WebCraftError as e:
        logging.error(f"❌ Chat failed: {e}")
        return f"❌ {e}"
    except RuntimeError as e:
        return f"❌ {e}"


def main():
    logging.info("🚀 MCP Server 'WebCraftAI' starting...")
    logging.info(f"🤖 LLM provider: {settings.LLM_PROVIDER}")
    logging.info(f"📦 Archive cap: {settings.MAX_ARCHIVE_UNCOMPRESSED_BYTES} bytes")
    try:
        mcp.run()
    except KeyboardInterrupt:
        logging.info("🛑 Server stopped manually.")
    except Exception as e:
        logging.critical(f"❌ Fatal server error: {e}")


if __name__ == "__main__":
    main()
