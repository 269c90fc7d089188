"""
Skill Store - file-backed prompt templates.

Each skill lives in its own directory as <skills_dir>/<name>/SKILL.md:

    ---
    name: extract-product-specs
    description: ...
    version: 1.0.0
    model: default
    temperature: 0.1
    ---

    # Role
    <system prompt>

    # Instructions
    <user prompt template with {{placeholders}}>

    # Output Format
    <optional, appended to the user prompt>

Lookups return None for unknown names; callers that need a skill use
require_skill() so the failure names the missing skill.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml
from django.conf import settings

from content_pipeline.exceptions import SkillNotFoundError

logger = logging.getLogger(__name__)

SKILL_FILENAME = "SKILL.md"

_FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*\n(.*)$", re.DOTALL)
_ROLE_RE = re.compile(r"^# Role\s*\n(.*?)(?=^# )", re.DOTALL | re.MULTILINE)
_INSTRUCTIONS_RE = re.compile(
    r"^# Instructions\s*\n(.*?)(?=^# Output Format|\Z)", re.DOTALL | re.MULTILINE
)
_OUTPUT_FORMAT_RE = re.compile(r"^# Output Format\s*\n(.*)\Z", re.DOTALL | re.MULTILINE)
_PLACEHOLDER_RE = re.compile(r"\{\{\s*([\w.-]+)\s*\}\}")


@dataclass(frozen=True)
class AiSkill:
    """A named, versioned prompt template bundle."""

    name: str
    system_prompt_template: str
    user_prompt_template: str
    model: str = "default"
    temperature: float = 0.7
    version: str = "1.0.0"
    description: str = ""


def inject_context(template: str, context: Dict[str, object]) -> str:
    """
    Replace every {{key}} in template with str(context[key]).

    Placeholders without a context entry are left verbatim.
    """

    def _replace(match):
        key = match.group(1)
        if key in context:
            return str(context[key])
        return match.group(0)

    return _PLACEHOLDER_RE.sub(_replace, template)


def parse_skill_markdown(content: str) -> AiSkill:
    """
    Parse a SKILL.md document.

    Raises:
        ValueError: If the frontmatter or a required section is missing
    """
    fm_match = _FRONTMATTER_RE.match(content.lstrip("\ufeff"))
    if not fm_match:
        raise ValueError("Invalid SKILL.md: missing frontmatter")

    frontmatter = yaml.safe_load(fm_match.group(1)) or {}
    if not isinstance(frontmatter, dict) or not frontmatter.get("name"):
        raise ValueError("Invalid SKILL.md: frontmatter must define 'name'")

    body = fm_match.group(2)
    role_match = _ROLE_RE.search(body)
    instructions_match = _INSTRUCTIONS_RE.search(body)
    if not role_match or not instructions_match:
        raise ValueError('Invalid SKILL.md: missing "# Role" or "# Instructions" section')

    user_prompt = instructions_match.group(1).strip()
    output_match = _OUTPUT_FORMAT_RE.search(body)
    if output_match:
        user_prompt += f"\n\n## Output Format\n{output_match.group(1).strip()}"

    temperature = frontmatter.get("temperature")
    return AiSkill(
        name=str(frontmatter["name"]),
        system_prompt_template=role_match.group(1).strip(),
        user_prompt_template=user_prompt,
        model=str(frontmatter.get("model") or "default"),
        temperature=float(temperature) if temperature is not None else 0.7,
        version=str(frontmatter.get("version", "1.0.0")),
        description=str(frontmatter.get("description") or ""),
    )


class FileSkillRepository:
    """
    Loads skills from a directory tree of SKILL.md files.

    Files are read on every lookup; skills are authored out-of-band and the
    store never writes them.
    """

    def __init__(self, skills_dir: Optional[str] = None):
        self.skills_dir = Path(
            skills_dir or getattr(settings, "PIPELINE_SKILLS_DIR", "skills")
        )

    def _skill_path(self, name: str) -> Path:
        return self.skills_dir / name / SKILL_FILENAME

    def find_by_name(self, name: str) -> Optional[AiSkill]:
        """Return the named skill, or None when no SKILL.md exists for it."""
        path = self._skill_path(name)
        try:
            content = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No skill file at {path}")
            return None
        return parse_skill_markdown(content)

    def find_all(self) -> List[AiSkill]:
        """Return every skill under the root, sorted by directory name."""
        if not self.skills_dir.is_dir():
            return []

        skills = []
        for entry in sorted(self.skills_dir.iterdir()):
            if not entry.is_dir():
                continue
            path = entry / SKILL_FILENAME
            if not path.is_file():
                continue
            skills.append(parse_skill_markdown(path.read_text(encoding="utf-8")))
        return skills


def require_skill(repository, name: str) -> AiSkill:
    """Look up a skill and fail fast when it is missing."""
    skill = repository.find_by_name(name)
    if skill is None:
        raise SkillNotFoundError(name)
    return skill


async def run_skill(llm, skill: AiSkill, context: Dict[str, object]) -> str:
    """Render a skill's templates with context and run them on the LLM."""
    return await llm.run(
        inject_context(skill.user_prompt_template, context),
        system_prompt=inject_context(skill.system_prompt_template, context),
        model=skill.model,
        temperature=skill.temperature,
    )
