"""Base agent class with shared prompt utilities."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from config.settings import Settings
from models.enums import OutputLanguage, TargetAudience, WritingStyle
from models.project import Project
from tools.agent_sdk_client import AgentSDKClient

logger = logging.getLogger(__name__)

_PROMPTS_DIR = Path(__file__).parent.parent / "config" / "prompts"

AUDIENCE_LABELS = {
    TargetAudience.NOVICE: "Novice (little or no prior background)",
    TargetAudience.INTERMEDIATE: "Intermediate engineer (some hands-on experience)",
    TargetAudience.EXPERT: "Expert (wants depth and low-level architecture)",
}

STYLE_TONES = {
    WritingStyle.TECHNICAL_MANUAL: "rigorous and authoritative, focused on specifications and standards",
    WritingStyle.TUTORIAL: "gradual and approachable, building from simple to advanced",
    WritingStyle.PRACTICAL_GUIDE: "hands-on, clear steps that solve concrete problems",
    WritingStyle.REFERENCE_MANUAL: "concise entries optimised for quick lookup",
}

LANGUAGE_INSTRUCTIONS = {
    OutputLanguage.CHINESE: "Write everything in Simplified Chinese.",
    OutputLanguage.ENGLISH: "Write everything in English.",
}

# Long reference material is cut to keep prompts bounded
_MAX_MATERIALS_CHARS = 20000


@lru_cache(maxsize=32)
def _read_prompt_file(path: str) -> str:
    """Read and cache a prompt file by absolute path string."""
    return Path(path).read_text(encoding="utf-8")


class BaseAgent:
    """Base class for the generation agents."""

    def __init__(
        self,
        llm_client: Optional[AgentSDKClient] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or Settings()
        self.llm = llm_client or AgentSDKClient(self.settings)

    def _load_prompt(self, template_name: str) -> str:
        """Load a prompt template from config/prompts/ (cached after first read).

        Args:
            template_name: Filename without extension, e.g. 'outline'.
        """
        path = _PROMPTS_DIR / f"{template_name}.md"
        if not path.exists():
            raise FileNotFoundError(f"Prompt template not found: {path}")
        return _read_prompt_file(str(path))

    def _extract_section(self, template: str, section_header: str) -> str:
        """Extract a specific section from a prompt template.

        Sections are delimited by '## ' headers in the markdown.
        """
        lines = template.split("\n")
        capturing = False
        result = []
        for line in lines:
            if line.strip().startswith("## ") and section_header in line:
                capturing = True
                continue
            elif line.strip().startswith("## ") and capturing:
                break
            elif capturing:
                result.append(line)
        return "\n".join(result).strip()

    @staticmethod
    def _project_fields(project: Project) -> dict:
        """Prompt fields shared by every template that describes a project."""
        materials = project.materials.strip()
        if len(materials) > _MAX_MATERIALS_CHARS:
            materials = materials[:_MAX_MATERIALS_CHARS] + "\n[...truncated]"
        return {
            "audience": AUDIENCE_LABELS.get(project.target_audience, project.target_audience),
            "writing_style": project.writing_style.value,
            "style_tone": STYLE_TONES.get(project.writing_style, "professional technical writing"),
            "language_instruction": LANGUAGE_INSTRUCTIONS[project.output_language],
            "code_language": project.language,
            "materials": materials or "(none)",
            "reference_links": ", ".join(project.reference_links) or "(none)",
        }
