"""
Generative suggestions for pathways, modules and whole structures.

Prompts are assembled here and sent through GeminiClient. Model output is
parsed once, at this boundary: JSON through ``extract_json``, prerequisites
through ``normalize_prerequisites``, segments and structures through the
request schemas. Nothing here writes to the database.
"""

import json
import re
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from learnpath.ai.gemini_client import GeminiClient
from learnpath.engines.prerequisites.normalization import flatten_prerequisites, normalize_prerequisites
from learnpath.kernel.errors import GenerationError
from learnpath.kernel.models.module import Module
from learnpath.kernel.models.pathway import Pathway
from learnpath.logging_config import get_logger
from learnpath.schemas.ai import AttachedFile, PathwayStructure
from learnpath.schemas.module import ContentSegment

logger = get_logger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)

PATHWAY_PROPERTY_INSTRUCTIONS = {
    "title": "Write a short, engaging title for this learning pathway. Reply with the title only.",
    "description": (
        "Write a one-paragraph markdown description of what learners achieve in this "
        "pathway and why it is worth taking. Reply with the description only."
    ),
    "goal": (
        "Write a one-sentence goal stating what learners can do after finishing. "
        'Start with "To". Reply with the goal only.'
    ),
    "requirements": (
        "List, as markdown bullet points, the knowledge, skills or resources needed "
        "before starting. Reply with the list only."
    ),
    "target_audience": (
        "Describe concisely who would benefit most from this pathway. "
        "Reply with the description only."
    ),
}


def extract_json(text: str) -> Any:
    """
    Parse JSON out of model output.

    Accepts a bare JSON document, a fenced ```json block, or the outermost
    object or array embedded in surrounding prose.

    Raises:
        GenerationError: If no candidate parses
    """
    text = (text or "").strip()
    candidates = [text]

    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1))

    for opener, closer in (("{", "}"), ("[", "]")):
        start = text.find(opener)
        end = text.rfind(closer)
        if start != -1 and end > start:
            candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue

    raise GenerationError("Could not parse JSON from generated content")


def _pathway_context(pathway: Pathway) -> str:
    lines = [
        f"Title: {pathway.title}",
        f"Description: {pathway.description}",
    ]
    if pathway.goal:
        lines.append(f"Goal: {pathway.goal}")
    if pathway.requirements:
        lines.append(f"Requirements: {pathway.requirements}")
    if pathway.target_audience:
        lines.append(f"Target audience: {pathway.target_audience}")
    return "\n".join(lines)


def _module_context(module: Module, pathway: Pathway) -> str:
    return "\n".join([
        f"Pathway: {pathway.title}",
        f"Module name: {module.name}",
        f"Module description: {module.description or ''}",
        f"Module concepts: {', '.join(module.concepts or [])}",
    ])


class GenerationService:
    """Builds prompts and parses generated suggestions."""

    def __init__(self, client: Optional[GeminiClient] = None):
        self.client = client or GeminiClient()

    async def generate_pathway_properties(
        self,
        pathway: Pathway,
        properties: Sequence[str],
    ) -> Dict[str, str]:
        results: Dict[str, str] = {}
        for prop in properties:
            prompt = f"{PATHWAY_PROPERTY_INSTRUCTIONS[prop]}\n\n{_pathway_context(pathway)}"
            results[prop] = (await self.client.generate(prompt)).strip()
        return results

    async def generate_module_properties(
        self,
        module: Module,
        pathway: Pathway,
        properties: Sequence[str],
        pathway_modules: Sequence[Module] = (),
    ) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        for prop in properties:
            if prop == "name":
                results["name"] = await self._module_text(
                    module, pathway,
                    "Write a concise name (under 50 characters) for this module. Reply with the name only.",
                )
            elif prop == "description":
                results["description"] = await self._module_text(
                    module, pathway,
                    "Write a markdown description of what learners achieve in this module and "
                    "how it fits the pathway. Reply with the description only.",
                )
            elif prop == "concepts":
                results["concepts"] = await self.generate_concepts(module, pathway)
            elif prop == "prerequisites":
                results["prerequisites"] = await self.generate_prerequisites(
                    module, pathway, pathway_modules
                )
            elif prop == "content":
                results["content"] = await self.generate_content(module, pathway)
        return results

    async def generate_concepts(self, module: Module, pathway: Pathway) -> List[str]:
        prompt = (
            "List the concepts this learning module should cover, each a few words long.\n"
            'Reply with only a JSON array of strings, e.g. ["Concept 1", "Concept 2"].\n\n'
            f"{_module_context(module, pathway)}"
        )
        parsed = extract_json(await self.client.generate(prompt))
        if not isinstance(parsed, list):
            raise GenerationError("Generated concepts are not a list")
        return [str(item).strip() for item in parsed if str(item).strip()]

    async def generate_prerequisites(
        self,
        module: Module,
        pathway: Pathway,
        pathway_modules: Sequence[Module],
    ) -> List[List[str]]:
        """
        Suggest prerequisite groups from the other modules of the pathway.

        Suggestions are only normalized here; they go through the validator
        when applied.
        """
        available = "\n".join(
            f"- {m.name} (key: {m.key}; concepts: {', '.join(m.concepts or [])})"
            for m in pathway_modules
            if m.key != module.key
        )
        prompt = (
            "Suggest prerequisites for this module from the available modules below.\n"
            "Return a JSON array of arrays of module keys. Keys inside one array are all "
            "required (AND); separate arrays are alternatives (OR). Return [] when no "
            'prerequisites are needed. Example: [["key-1", "key-2"], ["key-3"]].\n'
            "Reply with the JSON only.\n\n"
            f"{_module_context(module, pathway)}\n\nAvailable modules:\n{available or '(none)'}"
        )
        parsed = extract_json(await self.client.generate(prompt))
        try:
            return normalize_prerequisites(parsed)
        except ValueError as e:
            raise GenerationError(f"Generated prerequisites are malformed: {e}") from e

    async def generate_content(self, module: Module, pathway: Pathway) -> List[Dict[str, Any]]:
        prompt = (
            f"Create an introductory learning module for {pathway.target_audience or 'learners'}.\n"
            "Reply with only a JSON array of segments. Each segment is an object with "
            '"type" (one of article, research, exercise, session, project, integration), '
            '"title", "content" (HTML) and optional "section".\n'
            "Open with a short warmup article, teach mainly through research segments, "
            "practice with exercises, and finish with one project.\n\n"
            f"{_module_context(module, pathway)}\n"
            f"Prerequisite modules: {', '.join(flatten_prerequisites(module.prerequisites or [])) or 'none'}"
        )
        parsed = extract_json(await self.client.generate(prompt))
        if not isinstance(parsed, list):
            raise GenerationError("Generated content is not a list of segments")
        try:
            return [ContentSegment.model_validate(item).model_dump(mode="json") for item in parsed]
        except ValidationError as e:
            raise GenerationError("Generated content segments are malformed") from e

    async def generate_pathway_structure(
        self,
        pathway: Pathway,
        modules: Sequence[Module],
        user_prompt: str,
        attached_files: Sequence[AttachedFile] = (),
    ) -> PathwayStructure:
        """
        Propose a complete module list for the pathway.

        The proposal is returned, not applied; applying goes through
        ModuleService.apply_structure and its validation.
        """
        current = [
            {
                "key": m.key,
                "name": m.name,
                "concepts": list(m.concepts or []),
                "prerequisites": [list(g) for g in (m.prerequisites or [])],
            }
            for m in modules
        ]
        files_text = "\n\n".join(f"Filename: {f.name}\nContent: {f.content}" for f in attached_files)
        prompt = (
            "Review the learning pathway below and revise its module graph only where the "
            "request and attached files call for it. You may keep, edit, merge, add or "
            "remove modules.\n"
            'Reply with raw JSON only: {"modules": [...], "summary": "..."}.\n'
            'Each module has "key", "name", "concepts" (strings) and "prerequisites", a '
            "list of groups of module keys (all keys in a group required, any one group "
            "sufficient). The graph must stay acyclic, and no module may list a "
            "prerequisite that another of its prerequisites already requires.\n\n"
            f"PATHWAY:\n{_pathway_context(pathway)}\nModules: {json.dumps(current)}\n\n"
            f"REQUEST: {user_prompt}\n\nATTACHED FILES:\n{files_text or '(none)'}"
        )
        parsed = extract_json(await self.client.generate(prompt))
        try:
            structure = PathwayStructure.model_validate(parsed)
        except ValidationError as e:
            raise GenerationError("Generated pathway structure is malformed") from e

        logger.info(
            "Pathway structure generated",
            extra={"pathway_id": str(pathway.id), "module_count": len(structure.modules)},
        )
        return structure

    async def _module_text(self, module: Module, pathway: Pathway, instruction: str) -> str:
        prompt = f"{instruction}\n\n{_module_context(module, pathway)}"
        return (await self.client.generate(prompt)).strip()
